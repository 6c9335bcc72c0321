"""Code package ingestion: archive streaming, unpacking and record creation."""

from __future__ import annotations

import errno
import hashlib
import logging
import os
import shutil
import tarfile
import tempfile
import zipfile
import zlib
from dataclasses import dataclass
from pathlib import Path, PurePosixPath
from typing import BinaryIO, Final, Iterable
from uuid import uuid4

from shipyard.db import ApplicationRepositoryPort, OrganizationRepositoryPort
from shipyard.domain import (
    IngestResult,
    NotFoundError,
    RequestContext,
    SourceReference,
    UnpackError,
    ValidationError,
    domain_resolve_instances,
    domain_validate_resource_name,
)

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class CodePackageIngestorConfig:
    """Configuration values for code package ingestion.

    Attributes:
        staging_root: Directory holding unpacked content per organization/application.
        source_base_url: Base URL under which the pipeline reads staged content.
        route_domain: Domain suffix for application routes.
        default_instances: Instance count used when the request omits it.
        upload_max_bytes: Upper bound for one uploaded archive.
    """

    staging_root: str
    source_base_url: str
    route_domain: str
    default_instances: int = 1
    upload_max_bytes: int = 512 * 1024 * 1024


class CodePackageIngestor:
    """Turn an uploaded archive into staged content and an application record.

    The record is only written after the archive unpacked successfully, so a
    broken upload never creates or mutates an application.
    """

    _CHUNK_SIZE: Final[int] = 1024 * 1024
    _PUBLISH_ATTEMPTS: Final[int] = 5

    def __init__(
        self,
        organization_repository: OrganizationRepositoryPort,
        application_repository: ApplicationRepositoryPort,
        config: CodePackageIngestorConfig,
    ):
        """Initialize the ingestor.

        Args:
            organization_repository: Organization existence lookups.
            application_repository: Application record persistence.
            config: Ingestion configuration.

        Raises:
            ValueError: Raised when dependencies or config values are invalid.
        """

        if organization_repository is None:
            raise ValueError("organization_repository must not be None")
        if application_repository is None:
            raise ValueError("application_repository must not be None")
        if not config.staging_root.strip():
            raise ValueError("config.staging_root must not be blank")
        if not config.source_base_url.strip():
            raise ValueError("config.source_base_url must not be blank")
        if not config.route_domain.strip():
            raise ValueError("config.route_domain must not be blank")
        if config.default_instances < 1:
            raise ValueError("config.default_instances must be >= 1")
        if config.upload_max_bytes < 1:
            raise ValueError("config.upload_max_bytes must be >= 1")

        self._organization_repository = organization_repository
        self._application_repository = application_repository
        self._config = config
        self._staging_root = Path(config.staging_root)

    def ingest_code_package(
        self,
        context: RequestContext,
        organization: str,
        application_name: str,
        archive_stream: BinaryIO,
        requested_instances: str | None,
    ) -> IngestResult:
        """Validate, unpack and register one uploaded code package.

        Args:
            context: Request context.
            organization: Target organization.
            application_name: Target application name.
            archive_stream: Readable binary stream of the archive.
            requested_instances: Instance count text, None when omitted.

        Returns:
            IngestResult: Stored record, content reference and prospective route.

        Raises:
            ValidationError: Raised for invalid instances, names or oversize uploads.
            NotFoundError: Raised when the organization does not exist.
            UnpackError: Raised when the archive cannot be extracted.
            InfrastructureError: Raised when the record cannot be stored.
        """

        desired_instances = domain_resolve_instances(requested_instances, self._config.default_instances)
        domain_validate_resource_name(application_name, "application")
        if not self._organization_repository.db_organization_exists(organization):
            raise NotFoundError(f"organization '{organization}' does not exist")

        self._staging_root.mkdir(parents=True, exist_ok=True)
        with tempfile.TemporaryDirectory(prefix=".upload-", dir=self._staging_root) as work_dir:
            archive_path = Path(work_dir) / "archive"
            content_path = Path(work_dir) / "content"
            revision = self._ingest_spool_archive(archive_stream=archive_stream, archive_path=archive_path)
            self._ingest_unpack(archive_path=archive_path, destination=content_path)
            self._ingest_publish_content(
                content_path=content_path,
                target_path=self.ingest_content_path(organization, application_name),
            )

        record = self._application_repository.db_application_upsert_instances(
            organization=organization,
            name=application_name,
            desired_instances=desired_instances,
        )
        source_reference = SourceReference(
            url=f"{self._config.source_base_url.rstrip('/')}/{organization}/{application_name}",
            revision=revision,
        )
        context.logger.info(
            "ingested code package for %s/%s revision=%s instances=%d",
            organization,
            application_name,
            revision,
            desired_instances,
        )
        return IngestResult(
            record=record,
            source_reference=source_reference,
            route=self.ingest_default_route(application_name),
        )

    def ingest_default_route(self, application_name: str) -> str:
        """Return the route an application gets when staging names none.

        Args:
            application_name: Application name.

        Returns:
            str: Hostname under the configured route domain.
        """

        return f"{application_name}.{self._config.route_domain}"

    def ingest_content_path(self, organization: str, application_name: str) -> Path:
        """Return the directory holding the staged content of an application.

        Args:
            organization: Organization name.
            application_name: Application name.

        Returns:
            Path: Content directory path.
        """

        return self._staging_root / organization / application_name

    def ingest_remove_content(self, context: RequestContext, organization: str, application_name: str) -> bool:
        """Delete staged content of an application.

        Removal failures are logged and reported as False; the caller's
        lifecycle operation is not failed by leftover files.

        Args:
            context: Request context.
            organization: Organization name.
            application_name: Application name.

        Returns:
            bool: True when content existed and was removed.
        """

        content_path = self.ingest_content_path(organization, application_name)
        if not content_path.exists():
            return False
        try:
            shutil.rmtree(content_path)
        except OSError as error:
            context.logger.warning("failed to remove staged content %s: %s", content_path, error)
            return False
        return True

    def _ingest_spool_archive(self, archive_stream: BinaryIO, archive_path: Path) -> str:
        """Copy the upload stream to disk while hashing and bounding its size.

        Args:
            archive_stream: Readable binary stream.
            archive_path: Destination file path.

        Returns:
            str: SHA-256 hex digest of the archive bytes, used as revision.

        Raises:
            ValidationError: Raised when the upload exceeds the size limit.
            UnpackError: Raised when the stream cannot be read.
        """

        digest = hashlib.sha256()
        total_bytes = 0
        try:
            with archive_path.open("wb") as archive_file:
                while True:
                    chunk = archive_stream.read(self._CHUNK_SIZE)
                    if not chunk:
                        break
                    total_bytes += len(chunk)
                    if total_bytes > self._config.upload_max_bytes:
                        raise ValidationError(
                            "archive exceeds maximum upload size",
                            f"limit is {self._config.upload_max_bytes} bytes",
                        )
                    digest.update(chunk)
                    archive_file.write(chunk)
        except OSError as error:
            raise UnpackError(f"could not read upload stream: {error}") from error
        return digest.hexdigest()

    def _ingest_unpack(self, archive_path: Path, destination: Path) -> None:
        """Extract a tar or zip archive into an empty destination directory.

        Args:
            archive_path: Spooled archive file.
            destination: Directory to create and extract into.

        Raises:
            UnpackError: Raised for corrupt, truncated, empty, unsafe or
                unsupported archives.
        """

        destination.mkdir()
        try:
            if tarfile.is_tarfile(archive_path):
                with tarfile.open(archive_path, mode="r:*") as tar_archive:
                    members = tar_archive.getmembers()
                    self._ingest_check_member_names(member.name for member in members)
                    tar_archive.extractall(destination, members=members, filter="data")
            elif zipfile.is_zipfile(archive_path):
                with zipfile.ZipFile(archive_path) as zip_archive:
                    self._ingest_check_member_names(zip_archive.namelist())
                    bad_member = zip_archive.testzip()
                    if bad_member is not None:
                        raise UnpackError(f"corrupt archive member {bad_member}")
                    zip_archive.extractall(destination)
            else:
                raise UnpackError("unsupported archive format, expected tar or zip")
        except (tarfile.TarError, zipfile.BadZipFile, zlib.error, EOFError, OSError) as error:
            raise UnpackError(str(error) or type(error).__name__) from error

        if not any(destination.iterdir()):
            raise UnpackError("archive contains no files")

    def _ingest_check_member_names(self, member_names: Iterable[str]) -> None:
        """Reject archive members that would land outside the destination.

        Args:
            member_names: Member paths as stored in the archive.

        Raises:
            UnpackError: Raised for absolute or parent-relative member paths.
        """

        for member_name in member_names:
            member_path = PurePosixPath(member_name)
            if member_path.is_absolute() or ".." in member_path.parts:
                raise UnpackError(f"archive member escapes destination: {member_name}")

    def _ingest_publish_content(self, content_path: Path, target_path: Path) -> None:
        """Replace the application's content directory with freshly unpacked files.

        A concurrent upload of the same application may publish between the
        retire and the final rename; the rename is then retried so the last
        writer's content ends up published.

        Args:
            content_path: Unpacked content inside the work directory.
            target_path: Published content directory.

        Raises:
            UnpackError: Raised when the content cannot be moved into place.
        """

        try:
            target_path.parent.mkdir(parents=True, exist_ok=True)
        except OSError as error:
            raise UnpackError(f"could not publish unpacked content: {error}") from error

        for attempt in range(1, self._PUBLISH_ATTEMPTS + 1):
            retired_path = target_path.with_name(f".{target_path.name}.retired-{uuid4().hex[:8]}")
            try:
                try:
                    os.replace(target_path, retired_path)
                except FileNotFoundError:
                    pass
                os.replace(content_path, target_path)
            except OSError as error:
                if error.errno not in (errno.ENOTEMPTY, errno.EEXIST) or attempt == self._PUBLISH_ATTEMPTS:
                    raise UnpackError(f"could not publish unpacked content: {error}") from error
                logger.debug("content at %s replaced concurrently, retrying publish", target_path)
                continue
            finally:
                if retired_path.exists():
                    shutil.rmtree(retired_path, ignore_errors=True)
            break

        logger.debug("published content at %s", target_path)
