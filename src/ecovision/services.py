"""
Dashboard flows that combine stores, collaborators and notifications.

- ClassificationService: classify an image and record the result
- ReportService: export a report and count the download
- create_app: wire every component on one backend
"""

from dataclasses import dataclass
from typing import Optional

from loguru import logger

from .auth.models import Identity, SessionClaim
from .auth.permissions import AccessGuard
from .auth.session_manager import SessionManager
from .clock import Clock, utc_now
from .collaborators import (
    EXPORT_FORMATS,
    Classifier,
    CsvExporter,
    Exporter,
    Locator,
    MockClassifier,
    call_with_timeout,
)
from .config import Settings, get_settings
from .errors import (
    CollaboratorError,
    EcoVisionError,
    PermissionDeniedError,
    ValidationError,
)
from .notifications import Notifier
from .records.classifications import ClassificationStore
from .records.models import ClassificationRecord
from .records.reports import ReportStore
from .records.stats import StatsAggregator, achievements, certificate_eligible
from .storage import KeyValueStore, open_store


@dataclass(frozen=True)
class ClassifiedItem:
    """A stored classification and the claim re-issued with refreshed counters."""
    record: ClassificationRecord
    claim: SessionClaim


class ClassificationService:
    """
    Classify an image and store the outcome.

    Nothing is stored when the classifier fails or times out.
    """

    def __init__(
        self,
        classifications: ClassificationStore,
        sessions: SessionManager,
        notifier: Notifier,
        classifier: Classifier,
        locator: Optional[Locator] = None,
        settings: Optional[Settings] = None,
    ):
        self.classifications = classifications
        self.sessions = sessions
        self.notifier = notifier
        self.classifier = classifier
        self.locator = locator
        self.settings = settings or get_settings()

    def classify(self, actor: Identity, image: bytes, image_url: Optional[str] = None) -> ClassifiedItem:
        """
        Run the classifier and record its outcome for ``actor``.

        Args:
            actor: Authenticated identity
            image: Raw image bytes
            image_url: Optional reference stored on the record

        Returns:
            ClassifiedItem with the stored record and the actor's new claim

        Raises:
            CollaboratorTimeout: If the classifier does not answer in time
            CollaboratorError: If the classifier fails with any other error
            ValidationError: If the classifier's outcome is not storable
        """
        timeout = self.settings.collaborator_timeout_seconds
        self.notifier.info("Analyzing your e-waste item...")

        try:
            outcome = call_with_timeout("classifier", self.classifier.classify, timeout, image)
        except EcoVisionError:
            self.notifier.error("Classification failed. Please try again.")
            raise
        except Exception as e:
            logger.exception("Classifier raised an unexpected error")
            self.notifier.error("Classification failed. Please try again.")
            raise CollaboratorError("classifier", str(e)) from e

        location = None
        if self.locator is not None:
            try:
                location = call_with_timeout("locator", self.locator.locate, timeout)
            except Exception as e:
                # Location is optional
                logger.warning(f"Location unavailable, storing classification without it: {e}")

        try:
            record = self.classifications.create(actor, outcome.to_draft(location, image_url))
        except ValidationError as e:
            self.notifier.error(f"Classification could not be saved: {e.reason}")
            raise

        claim = self._refresh_progress(actor)

        hazard_note = (
            "Hazardous materials detected." if record.is_hazardous
            else "No hazardous materials found."
        )
        self.notifier.success(
            f"Successfully classified {record.item_name}! {hazard_note}",
            "Classification Complete",
        )
        return ClassifiedItem(record=record, claim=claim)

    def _refresh_progress(self, actor: Identity) -> SessionClaim:
        # Counters track the actor's own records even for admins
        own = [r for r in self.classifications.list(actor) if r.owner_id == actor.id]
        total = len(own)
        return self.sessions.record_progress(
            actor,
            classifications_count=total,
            achievements=[badge.id for badge in achievements(total) if badge.unlocked],
            certificate_eligible=certificate_eligible(total, self.settings.certificate_threshold),
        )


class ReportService:
    """Export reports, counting only confirmed downloads."""

    def __init__(
        self,
        reports: ReportStore,
        notifier: Notifier,
        exporter: Exporter,
        settings: Optional[Settings] = None,
    ):
        self.reports = reports
        self.notifier = notifier
        self.exporter = exporter
        self.settings = settings or get_settings()

    def download(self, actor: Identity, report_id: str, fmt: str) -> bytes:
        """
        Export a report the actor may read.

        ``download_count`` is incremented only after the exporter returned.

        Args:
            actor: Authenticated identity
            report_id: Report to export
            fmt: pdf, csv or slides

        Returns:
            Exported bytes

        Raises:
            ValidationError: For an unknown format or an exporter rejection
            NotFoundError: If the report does not exist
            PermissionDeniedError: If the actor may not read the report
            CollaboratorTimeout: If the exporter does not answer in time
            CollaboratorError: If the exporter fails with any other error
        """
        if fmt not in EXPORT_FORMATS:
            raise ValidationError("format", f"must be one of {', '.join(EXPORT_FORMATS)}")
        label = fmt.upper()

        try:
            report = self.reports.get(actor, report_id)
        except PermissionDeniedError:
            self.notifier.error("You do not have permission to download this report")
            raise

        self.notifier.info(f"Preparing {label} download...")
        try:
            data = call_with_timeout(
                "exporter",
                self.exporter.export,
                self.settings.collaborator_timeout_seconds,
                report,
                fmt,
            )
        except EcoVisionError:
            self.notifier.error(f"Failed to download {label} report")
            raise
        except Exception as e:
            logger.exception("Exporter raised an unexpected error")
            self.notifier.error(f"Failed to download {label} report")
            raise CollaboratorError("exporter", str(e)) from e

        self.reports.record_download(actor, report_id)
        self.notifier.success(f"{label} report downloaded successfully!")
        return data


@dataclass
class EcoVision:
    """All components sharing one backend."""
    settings: Settings
    store: KeyValueStore
    guard: AccessGuard
    sessions: SessionManager
    classifications: ClassificationStore
    reports: ReportStore
    stats: StatsAggregator
    notifier: Notifier
    classification_service: ClassificationService
    report_service: ReportService


def create_app(
    settings: Optional[Settings] = None,
    clock: Clock = utc_now,
    store: Optional[KeyValueStore] = None,
    classifier: Optional[Classifier] = None,
    exporter: Optional[Exporter] = None,
    locator: Optional[Locator] = None,
) -> EcoVision:
    """
    Build the component graph.

    Args:
        settings: Settings (defaults to environment settings)
        clock: Source of the current time for every component
        store: Backend (defaults to the one ``settings.database_path`` selects)
        classifier: Image classifier (defaults to MockClassifier)
        exporter: Report exporter (defaults to CsvExporter)
        locator: Optional locator

    Returns:
        EcoVision
    """
    settings = settings or get_settings()
    store = store if store is not None else open_store(settings.database_path)
    guard = AccessGuard()

    classifications = ClassificationStore(store, guard, settings, clock=clock)
    reports = ReportStore(store, guard, settings, clock=clock)
    sessions = SessionManager(
        store,
        guard=guard,
        record_stores=[classifications, reports],
        settings=settings,
        clock=clock,
    )
    notifier = Notifier(settings, clock=clock)

    return EcoVision(
        settings=settings,
        store=store,
        guard=guard,
        sessions=sessions,
        classifications=classifications,
        reports=reports,
        stats=StatsAggregator(classifications, settings),
        notifier=notifier,
        classification_service=ClassificationService(
            classifications,
            sessions,
            notifier,
            classifier or MockClassifier(),
            locator=locator,
            settings=settings,
        ),
        report_service=ReportService(reports, notifier, exporter or CsvExporter(), settings),
    )
