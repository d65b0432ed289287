# ABOUTME: Tests for the asyncclick command line interface
# ABOUTME: Invokes commands through the asyncclick test runner without touching the network

import json

import pytest
from asyncclick.testing import CliRunner

from minewiki.main import app as main


def test_main_function_exists():
    assert callable(main)


@pytest.mark.asyncio
async def test_main_command_help():
    result = await CliRunner().invoke(main, ["--help"])

    assert result.exit_code == 0
    assert "Minewiki" in result.output
    for command in ("items", "blocks", "recipes", "validate", "build-api", "upload", "logging-status"):
        assert command in result.output


@pytest.mark.asyncio
async def test_main_with_logging_status():
    result = await CliRunner().invoke(main, ["logging-status"])

    assert result.exit_code == 0
    assert "Logging Configuration" in result.output


@pytest.mark.asyncio
async def test_validate_fails_without_collections():
    result = await CliRunner().invoke(main, ["--json", "validate"])

    assert result.exit_code == 1
    reports = json.loads(result.output.strip().splitlines()[-1])
    assert [report["collection"] for report in reports] == ["items", "blocks", "recipes"]
    assert reports[0]["issues"][0].startswith("Missing file")


@pytest.mark.asyncio
async def test_build_api_reports_invalid_collections():
    result = await CliRunner().invoke(main, ["build-api"])
    assert result.exit_code == 1


@pytest.mark.asyncio
async def test_items_rejects_zero_concurrency():
    result = await CliRunner().invoke(main, ["items", "--concurrency", "0"])
    assert result.exit_code == 2


@pytest.mark.asyncio
async def test_upload_dry_run(tmp_path, monkeypatch):
    for name in ("R2_BUCKET", "R2_ENDPOINT", "R2_ACCOUNT_ID", "R2_DRY_RUN", "R2_PREFIX"):
        monkeypatch.delenv(name, raising=False)
    (tmp_path / "public" / "items").mkdir(parents=True)
    (tmp_path / "public" / "blocks").mkdir()
    (tmp_path / "public" / "items" / "stick.png").write_bytes(b"png")

    result = await CliRunner().invoke(
        main,
        [
            "--json",
            "upload",
            "--bucket",
            "mc-images",
            "--endpoint",
            "https://r2.example",
            "--public-dir",
            str(tmp_path / "public"),
            "--prefix",
            "images",
            "--dry-run",
        ],
    )

    assert result.exit_code == 0, result.output
    payload = json.loads(result.output.strip().splitlines()[-1])
    assert payload["dryRun"] is True
    assert payload["total"] == 1
    assert payload["prefix"] == "images/"


@pytest.mark.asyncio
async def test_upload_missing_bucket():
    result = await CliRunner().invoke(main, ["upload", "--dry-run"])

    assert result.exit_code == 1
    assert "Missing bucket" in result.output
