"""
EmergencyAlertService - Runs one 911 call event through the alert pipeline

    RECEIVED -> RESOLVING_PROPERTY -> FAILED | EXEMPT | CHECKING_DUPLICATE
    CHECKING_DUPLICATE -> DUPLICATE | ENRICHING -> DISPATCHING -> DONE

Only FAILED is reported as a failure. EXEMPT and DUPLICATE are successful
no-ops: the call was valid, there is just nothing new to send.
"""

from typing import Any, Dict, Iterable, List, Optional, Union

from alert_database import AlertRecord
from repositories.alert_record_repository import AlertRecordRepository
from services.alert_dedup_service import AlertDedupService
from services.audit_log_service import AuditLogService
from services.call_event import CallEvent, InvalidCallEventError, NormalizedCallEvent, PipelineOutcome
from services.common.result import Result
from services.context_enricher_service import ContextEnricherService
from services.enums import AlertType, AuditStage, PipelineState, PipelineStatus
from services.exemption_service import ExemptionService
from services.notification_dispatcher_service import NotificationDispatcherService
from services.property_resolver_service import PropertyResolverService
from services.time_zone_service import TimeNormalizerService
from logging_config import get_logger, pipeline_logger

logger = get_logger(__name__)

CallEventInput = Union[CallEvent, Dict[str, Any]]


class EmergencyAlertService:
    """Orchestrates the alert pipeline stages for one call event at a time"""

    def __init__(self,
                 property_resolver: PropertyResolverService,
                 exemption_service: ExemptionService,
                 time_normalizer: TimeNormalizerService,
                 dedup_service: AlertDedupService,
                 context_enricher: ContextEnricherService,
                 dispatcher: NotificationDispatcherService,
                 alert_record_repository: AlertRecordRepository,
                 audit_log: Optional[AuditLogService] = None,
                 alert_type: AlertType = AlertType.EMERGENCY_CALL):
        self.property_resolver = property_resolver
        self.exemption_service = exemption_service
        self.time_normalizer = time_normalizer
        self.dedup_service = dedup_service
        self.context_enricher = context_enricher
        self.dispatcher = dispatcher
        self.alert_record_repository = alert_record_repository
        self.audit_log = audit_log
        self.alert_type = alert_type

    def process_call_events(self, events: Iterable[CallEventInput]) -> Result[PipelineOutcome]:
        """
        Process the first call event of a PBX delivery.

        The integration may hand over zero or more records; only the first
        is processed and an empty delivery means there is nothing to do.
        """
        events = list(events or [])
        if not events:
            outcome = PipelineOutcome(status=PipelineStatus.NO_EVENT, state=PipelineState.DONE,
                                      reason="No call event supplied")
            self._audit(AuditStage.NO_EVENT, None, note=outcome.reason)
            pipeline_logger.log_outcome(outcome.status.value)
            return Result.success(outcome)
        if len(events) > 1:
            logger.info("Multiple call events supplied, processing the first", count=len(events))
        return self.process_call_event(events[0])

    def process_call_event(self, event: CallEventInput) -> Result[PipelineOutcome]:
        """
        Run one call event through every stage.

        Returns:
            Result[PipelineOutcome]: success for CREATED / EXEMPT / DUPLICATE,
            failure for PROPERTY_NOT_FOUND / PARTNER_PROPERTY_NOT_FOUND /
            INVALID_CALL_EVENT. The outcome is attached in both cases.
        """
        if not isinstance(event, CallEvent):
            try:
                event = CallEvent.from_payload(event)
            except InvalidCallEventError as e:
                self._audit(AuditStage.INVALID_CALL_EVENT, event, note=str(e))
                return self._fail(PipelineStatus.INVALID_CALL_EVENT, str(e))

        pipeline_logger.log_stage(PipelineState.RECEIVED.value,
                                  group_id=event.group_id,
                                  enterprise_id=event.enterprise_id,
                                  extension=event.extension)

        # Property
        pipeline_logger.log_stage(PipelineState.RESOLVING_PROPERTY.value)
        resolved = self.property_resolver.resolve(event)
        if resolved.is_failure:
            return self._fail(PipelineStatus(resolved.error_code), resolved.error)

        prop = resolved.data.property
        property_id = prop.id

        # Exemption
        if self.exemption_service.is_exempt(property_id, event):
            return self._finish(PipelineOutcome(status=PipelineStatus.EXEMPT,
                                                state=PipelineState.EXEMPT,
                                                property_id=property_id,
                                                reason=f"Dialed number {event.dialed_digits} is exempt"))

        # Local time + deduplication
        pipeline_logger.log_stage(PipelineState.CHECKING_DUPLICATE.value, property_id=property_id)
        local_time = self.time_normalizer.normalize(event, property_id)
        normalized = NormalizedCallEvent(
            event=event,
            property_id=property_id,
            extension=resolved.data.match.extension or event.extension,
            local_time=local_time,
        )

        decision = self.dedup_service.check(normalized, prop, self.alert_type)
        if decision.is_duplicate:
            return self._finish(PipelineOutcome(status=PipelineStatus.DUPLICATE,
                                                state=PipelineState.DUPLICATE,
                                                property_id=property_id,
                                                alert_id=decision.existing_alert_id,
                                                local_time=local_time,
                                                reason=f"Matched by {decision.strategy.value}"))

        # Context
        pipeline_logger.log_stage(PipelineState.ENRICHING.value, property_id=property_id)
        context = self.context_enricher.enrich(property_id, normalized.extension)

        # Notifications
        pipeline_logger.log_stage(PipelineState.DISPATCHING.value, property_id=property_id)
        dispatched = self.dispatcher.dispatch(normalized, prop, context, decision.dedup_key, self.alert_type)
        dispatch = dispatched.data
        if not dispatch.created:
            return self._finish(PipelineOutcome(status=PipelineStatus.DUPLICATE,
                                                state=PipelineState.DUPLICATE,
                                                property_id=property_id,
                                                local_time=local_time,
                                                reason="Concurrent delivery created the alert first"))

        return self._finish(PipelineOutcome(status=PipelineStatus.CREATED,
                                            state=PipelineState.DONE,
                                            property_id=property_id,
                                            alert_id=dispatch.alert_id,
                                            local_time=local_time))

    # Acknowledgement and listing for staff-facing callers

    def acknowledge_alert(self, alert_id: int, actor: str) -> Result[AlertRecord]:
        if not actor:
            return Result.failure("Acknowledging actor is required", code="INVALID_ACTOR")
        alert = self.alert_record_repository.acknowledge(alert_id, actor)
        if alert is None:
            return Result.failure(f"Alert {alert_id} not found", code="ALERT_NOT_FOUND")
        logger.info("Alert acknowledged", alert_id=alert_id, actor=actor)
        return Result.success(alert)

    def list_alerts(self, property_id: int, pending_only: bool = False, limit: int = 50) -> List[AlertRecord]:
        return self.alert_record_repository.find_for_property(property_id, pending_only=pending_only, limit=limit)

    # Helpers

    def _audit(self, stage: AuditStage, event, note: Optional[str] = None) -> None:
        if self.audit_log is not None:
            self.audit_log.record(stage, event, note=note)

    def _finish(self, outcome: PipelineOutcome) -> Result[PipelineOutcome]:
        pipeline_logger.log_outcome(outcome.status.value, property_id=outcome.property_id,
                                    alert_id=outcome.alert_id, reason=outcome.reason)
        return Result.success(outcome)

    def _fail(self, status: PipelineStatus, reason: Optional[str]) -> Result[PipelineOutcome]:
        outcome = PipelineOutcome(status=status, state=PipelineState.FAILED, reason=reason)
        pipeline_logger.log_outcome(status.value, reason=reason)
        return Result.failure(reason or status.value, code=status.value, data=outcome)
