"""
Tests for the command-line front end.

The API client is swapped for one backed by httpx.MockTransport;
the session lives in a JSON file under tmp_path.
"""

import json
from pathlib import Path
from typing import Any, Callable, Dict

import httpx
import pytest

from nutriscan import cli
from nutriscan.application.profile.profile_service import ProfileService, UserProfile
from nutriscan.domain.biometrics.models import BiometricProfile
from nutriscan.domain.history.models import HistoryItem
from nutriscan.domain.scan.projector import project
from nutriscan.domain.session.models import User
from nutriscan.infrastructure.config import ClientSettings
from nutriscan.infrastructure.http.api_client import NutriScanApiClient


@pytest.fixture
def settings(tmp_path: Path) -> ClientSettings:
    return ClientSettings(
        api_base_url="http://backend.test/api",
        storage_path=tmp_path / "storage.json",
    )


@pytest.fixture
def use_backend(monkeypatch: pytest.MonkeyPatch) -> Callable[[Callable[[httpx.Request], httpx.Response]], None]:
    """Route the CLI's API client through a mock handler."""

    def install(handler: Callable[[httpx.Request], httpx.Response]) -> None:
        def factory(**kwargs: Any) -> NutriScanApiClient:
            return NutriScanApiClient(
                transport=httpx.MockTransport(handler), retry_backoff=0, **kwargs
            )

        monkeypatch.setattr(cli, "NutriScanApiClient", factory)

    return install


def write_session(settings: ClientSettings, token: str = "tok-123") -> None:
    settings.storage_path.write_text(
        json.dumps({"authToken": token, "user": json.dumps({"email": "ada@example.com"})})
    )


class TestRun:
    """End-to-end command runs."""

    @pytest.mark.asyncio
    async def test_login_persists_session(
        self,
        settings: ClientSettings,
        use_backend: Any,
        auth_payload: Dict[str, Any],
        capsys: pytest.CaptureFixture[str],
    ) -> None:
        use_backend(lambda request: httpx.Response(200, json=auth_payload))
        args = cli.build_parser().parse_args(["login", "ada@example.com", "--password", "secret1"])

        code = await cli.run(args, settings)

        assert code == cli.EXIT_OK
        assert "Logged in as ada@example.com" in capsys.readouterr().out
        stored = json.loads(settings.storage_path.read_text())
        assert stored["authToken"] == "tok-123"

    @pytest.mark.asyncio
    async def test_scan_prints_result(
        self,
        settings: ClientSettings,
        use_backend: Any,
        scan_response: Dict[str, Any],
        tmp_path: Path,
        capsys: pytest.CaptureFixture[str],
    ) -> None:
        write_session(settings)
        photo = tmp_path / "plate.jpg"
        photo.write_bytes(b"jpeg")
        use_backend(lambda request: httpx.Response(200, json=scan_response))
        args = cli.build_parser().parse_args(["scan", "--mode", "food", str(photo)])

        code = await cli.run(args, settings)

        out = capsys.readouterr().out
        assert code == cli.EXIT_OK
        assert "Health score: 72/100 [good, #8BC34A]" in out
        assert "High in saturated fat" in out

    @pytest.mark.asyncio
    async def test_rejected_token_exit_code(
        self,
        settings: ClientSettings,
        use_backend: Any,
        tmp_path: Path,
    ) -> None:
        write_session(settings)
        photo = tmp_path / "plate.jpg"
        photo.write_bytes(b"jpeg")
        use_backend(lambda request: httpx.Response(401, json={"error": "Token expired"}))
        args = cli.build_parser().parse_args(["scan", str(photo)])

        code = await cli.run(args, settings)

        assert code == cli.EXIT_SESSION_REJECTED
        assert "authToken" not in json.loads(settings.storage_path.read_text())

    @pytest.mark.asyncio
    async def test_not_logged_in(
        self,
        settings: ClientSettings,
        use_backend: Any,
        capsys: pytest.CaptureFixture[str],
    ) -> None:
        calls = []

        def handler(request: httpx.Request) -> httpx.Response:
            calls.append(request)
            return httpx.Response(200, json={})

        use_backend(handler)
        args = cli.build_parser().parse_args(["history"])

        code = await cli.run(args, settings)

        assert code == cli.EXIT_ERROR
        assert calls == []
        assert "Please login first" in capsys.readouterr().err

    @pytest.mark.asyncio
    async def test_single_image_mode_rejects_several(
        self, settings: ClientSettings, use_backend: Any, tmp_path: Path
    ) -> None:
        write_session(settings)
        paths = []
        for n in range(2):
            photo = tmp_path / f"label{n}.jpg"
            photo.write_bytes(b"jpeg")
            paths.append(str(photo))
        use_backend(lambda request: httpx.Response(500))
        args = cli.build_parser().parse_args(["scan", "--mode", "label", *paths])

        assert await cli.run(args, settings) == cli.EXIT_ERROR


class TestParser:
    def test_profile_update_fields(self) -> None:
        args = cli.build_parser().parse_args(
            ["profile", "update", "--weight-kg", "80", "--diabetes", "no", "--scoring-mode", "per-100g"]
        )

        assert args.weight_kg == "80"
        assert args.diabetes == "no"
        assert args.scoring_mode == "per-100g"
        assert args.glucose is None

    def test_scan_requires_images(self) -> None:
        with pytest.raises(SystemExit):
            cli.build_parser().parse_args(["scan"])


class TestRendering:
    def test_render_result(self, scan_response: Dict[str, Any]) -> None:
        text = cli.render_result(project(scan_response))

        assert text.splitlines()[0] == "Chicken with fries"
        assert "Sodium" in text
        assert "Grilled chicken salad" in text
        assert "Not medical advice." in text

    def test_render_history_empty(self) -> None:
        assert cli.render_history([]) == "No scans yet"

    def test_render_history_row(self) -> None:
        item = HistoryItem(
            id="s1", scanType="food", foodName="Apple", overallScore=91, createdAt="2024-05-01T12:00:00Z"
        )

        row = cli.render_history([item])

        assert row.startswith("s1")
        assert "Food Photo" in row
        assert "excellent" in row

    def test_render_profile(self) -> None:
        biometrics = BiometricProfile(weight_kg=80, height_cm=180, glucose=130)
        derived, risks = ProfileService.preview(biometrics)
        text = cli.render_profile(
            UserProfile(
                user=User(email="ada@example.com"),
                biometrics=biometrics,
                derived=derived,
                risks=risks,
            )
        )

        assert "BMI: 24.7 (Normal)" in text
        assert "! glucose" in text
