from datetime import datetime
from unittest.mock import MagicMock

import pytest

from segment_service.core.dependency_container import DependencyContainer
from segment_service.db.unit_of_work import SqlUnitOfWork
from segment_service.segments.service import SegmentService


@pytest.fixture
def container(mock_settings: MagicMock, mock_db_session_factory: MagicMock) -> DependencyContainer:
    return DependencyContainer(settings=mock_settings, db_session_factory=mock_db_session_factory)


def test_container_holds_dependencies(container, mock_settings, mock_db_session_factory):
    assert container.settings is mock_settings
    assert container.db_session_factory is mock_db_session_factory
    assert container.db_engine is None


def test_create_unit_of_work(container):
    first = container.create_unit_of_work()
    second = container.create_unit_of_work()

    assert isinstance(first, SqlUnitOfWork)
    assert first is not second


def test_create_segment_service_reads_settings(container, mock_settings):
    mock_settings.get_report_tz_offset_hours.return_value = 5
    mock_settings.get_request_timeout_seconds.return_value = 2.5

    service = container.create_segment_service()

    assert isinstance(service, SegmentService)
    assert service._timeout_seconds == 2.5
    assert service._projector.format_timestamp(datetime(2023, 1, 1)) == "2023-01-01 05:00:00"
