"""Tests for the command-line client."""

from __future__ import annotations

import json

import pytest

import tryon_cli
from services.tryon_service import ModelStatus, TryOnResult


class FakeService:
    def __init__(self, result: TryOnResult | None = None, status: ModelStatus | None = None) -> None:
        self.result = result
        self.status = status

    async def perform_tryon(self, person_image_url: str, garment_image_url: str) -> TryOnResult:
        return self.result

    async def check_model_status(self) -> ModelStatus:
        return self.status


def test_cli_writes_result(tmp_path) -> None:
    output = tmp_path / "out" / "result.png"
    service = FakeService(result=TryOnResult(success=True, processing_time=10, image_buffer=b"png-bytes"))

    code = tryon_cli.main(
        ["--person", "https://x/p.jpg", "--garment", "https://x/g.jpg", "--output", str(output)],
        service=service,
    )

    assert code == 0
    assert output.read_bytes() == b"png-bytes"


def test_cli_reports_failure(tmp_path, capsys) -> None:
    output = tmp_path / "result.png"
    service = FakeService(result=TryOnResult(success=False, processing_time=10, error="boom"))

    code = tryon_cli.main(
        ["--person", "https://x/p.jpg", "--garment", "https://x/g.jpg", "--output", str(output)],
        service=service,
    )

    assert code == 1
    assert not output.exists()
    assert "boom" in capsys.readouterr().err


def test_cli_status(capsys) -> None:
    service = FakeService(status=ModelStatus(available=True, status="Connected"))

    assert tryon_cli.main(["--status"], service=service) == 0
    assert json.loads(capsys.readouterr().out) == {"available": True, "status": "Connected"}


def test_cli_requires_urls() -> None:
    with pytest.raises(SystemExit):
        tryon_cli.main(["--person", "https://x/p.jpg"], service=FakeService())
