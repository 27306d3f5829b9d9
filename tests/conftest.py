from __future__ import annotations

import io
from datetime import datetime, timezone

import pytest
from PIL import Image

from field_attendance.core.enums import Role
from field_attendance.users.model import Principal


@pytest.fixture
def fixed_now() -> datetime:
    # 2023-11-15 09:30 in Asia/Kolkata
    return datetime(2023, 11, 15, 4, 0, 0, tzinfo=timezone.utc)


@pytest.fixture
def jpeg_bytes() -> bytes:
    buf = io.BytesIO()
    Image.new("RGB", (64, 48), (200, 120, 40)).save(buf, "JPEG")
    return buf.getvalue()


@pytest.fixture
def selfie_file(tmp_path, jpeg_bytes):
    path = tmp_path / "selfie.jpg"
    path.write_bytes(jpeg_bytes)
    return path


@pytest.fixture
def employee() -> Principal:
    return Principal(user_id="u-1", employee_id="EMP001", name="Asha Verma", role=Role.EMPLOYEE)


@pytest.fixture
def admin() -> Principal:
    return Principal(user_id="u-admin", employee_id="ADM001", name="Admin", role=Role.ADMIN)
