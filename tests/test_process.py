"""Subprocess helper tests."""

import pytest

from app.utils.process import run


@pytest.mark.asyncio
async def test_run_captures_output():
    rc, out, err = await run(["sh", "-c", "echo hello; echo oops >&2; exit 3"])
    assert rc == 3
    assert out == "hello"
    assert err == "oops"


@pytest.mark.asyncio
async def test_run_missing_binary():
    rc, _, err = await run(["definitely-not-a-real-binary-xyz"])
    assert rc == 127
    assert "not found" in err


@pytest.mark.asyncio
async def test_run_timeout_kills_process():
    rc, _, err = await run(["sleep", "5"], timeout=0.2)
    assert rc == 124
    assert "timed out" in err


@pytest.mark.asyncio
async def test_run_env_extra():
    rc, out, _ = await run(["sh", "-c", "echo $CLAWHUDDLE_TEST_VAR"], env_extra={"CLAWHUDDLE_TEST_VAR": "42"})
    assert rc == 0
    assert out == "42"
