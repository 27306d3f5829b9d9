from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Optional

from .attendance.mongo_attendance_repository import MongoAttendanceRepository
from .attendance.service import AttendanceService
from .database.connection import MongoConfig, MongoConnection
from .geocoding.geocoder import LocationIQProvider, ReverseGeocoder
from .images.store import CloudinaryCredentials, CloudinaryImageStore
from .images.uploader import ImageUploader
from .replication.outbox import ReplicationOutbox
from .replication.sync import SecondaryReplicator
from .reports.service import AttendanceReportService
from .users.tokens import TokenService


@dataclass(frozen=True)
class Container:
    conn: Optional[MongoConnection]
    secondary_conn: Optional[MongoConnection]

    attendance_repo: MongoAttendanceRepository
    outbox: Optional[ReplicationOutbox]
    replicator: Optional[SecondaryReplicator]
    geocoder: ReverseGeocoder
    uploader: ImageUploader

    token_service: TokenService
    attendance_service: AttendanceService
    report_service: AttendanceReportService


def build_container(*, settings: Any) -> Container:
    conn = MongoConnection(MongoConfig(uri=str(settings.MONGODB_URI), database=str(settings.MONGODB_DB)))

    secondary_conn = None
    if getattr(settings, "MONGODB_URI_SECONDARY", ""):
        secondary_conn = MongoConnection(
            MongoConfig(uri=str(settings.MONGODB_URI_SECONDARY), database=str(settings.MONGODB_DB_SECONDARY))
        )

    attendance_repo = MongoAttendanceRepository(conn)
    outbox = ReplicationOutbox(conn) if bool(getattr(settings, "REPLICATION_OUTBOX", False)) else None
    replicator = SecondaryReplicator(
        secondary_conn,
        outbox=outbox,
        max_workers=int(getattr(settings, "REPLICATION_WORKERS", 2)),
    )

    image_store = CloudinaryImageStore(
        CloudinaryCredentials(
            cloud_name=str(settings.CLOUDINARY_CLOUD_NAME),
            api_key=str(settings.CLOUDINARY_API_KEY),
            api_secret=str(settings.CLOUDINARY_API_SECRET),
        ),
        timeout=float(settings.UPLOAD_TIMEOUT_SECONDS),
    )
    uploader = ImageUploader(
        image_store,
        max_attempts=int(settings.UPLOAD_MAX_ATTEMPTS),
        max_total_seconds=float(settings.UPLOAD_MAX_TOTAL_SECONDS),
    )

    provider = None
    if getattr(settings, "LOCATIONIQ_API_KEY", ""):
        provider = LocationIQProvider(str(settings.LOCATIONIQ_API_KEY), url=str(settings.LOCATIONIQ_URL))
    geocoder = ReverseGeocoder(provider)

    timezone = str(settings.TIMEZONE)
    attendance_service = AttendanceService(
        attendance_repo,
        uploader,
        geocoder,
        replicator,
        timezone=timezone,
    )
    report_service = AttendanceReportService(attendance_repo, timezone=timezone)

    return Container(
        conn=conn,
        secondary_conn=secondary_conn,
        attendance_repo=attendance_repo,
        outbox=outbox,
        replicator=replicator,
        geocoder=geocoder,
        uploader=uploader,
        token_service=TokenService(str(settings.SECRET_KEY)),
        attendance_service=attendance_service,
        report_service=report_service,
    )
