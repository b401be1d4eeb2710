"""Skia Gold client — drives the goldctl tool to upload screenshots."""

from __future__ import annotations

import asyncio
import json
import logging
import os
import re
from collections.abc import Mapping
from pathlib import Path
from typing import Optional

from goldcheck.ci.context import GOLDCTL_VAR, TASK_ID_VAR, TRYJOB_VAR
from goldcheck.errors import UploadError

logger = logging.getLogger(__name__)

COMMIT_VAR = "GOLD_COMMIT"

_PULL_REF = re.compile(r"refs/pull/(\d+)/head")


class SkiaGoldClient:
    """Wrapper around goldctl.

    Authentication and session init run at most once per client, so repeated
    add calls only repeat the upload itself.
    """

    def __init__(
        self,
        work_dir: Path,
        *,
        goldctl: Optional[str] = None,
        instance: str = "engine",
        dimensions: Optional[dict[str, str]] = None,
        env: Optional[Mapping[str, str]] = None,
    ):
        self.work_dir = Path(work_dir)
        self.env = env if env is not None else os.environ
        self.goldctl = goldctl or self.env.get(GOLDCTL_VAR, "goldctl")
        self.instance = instance
        self.dimensions = dict(dimensions or {})
        self._lock = asyncio.Lock()
        self._authorized = False
        self._initialized = False
        self._tryjob_initialized = False

    @property
    def _temp_dir(self) -> Path:
        return self.work_dir / "temp"

    @property
    def _keys_file(self) -> Path:
        return self.work_dir / "keys.json"

    @property
    def _failures_file(self) -> Path:
        return self.work_dir / "failures.json"

    async def _run(self, args: list[str], failure: str) -> str:
        command = [self.goldctl, *args]
        logger.debug("Running: %s", " ".join(command))
        try:
            proc = await asyncio.create_subprocess_exec(
                *command,
                stdout=asyncio.subprocess.PIPE,
                stderr=asyncio.subprocess.STDOUT,
            )
        except FileNotFoundError as e:
            raise UploadError(f"{failure}: goldctl not found at '{self.goldctl}'") from e
        out, _ = await proc.communicate()
        output = out.decode("utf-8", errors="replace") if out else ""
        if proc.returncode != 0:
            raise UploadError(f"{failure} (exit code {proc.returncode})", output)
        return output

    async def _commit(self) -> str:
        commit = self.env.get(COMMIT_VAR)
        if commit:
            return commit
        proc = await asyncio.create_subprocess_exec(
            "git", "rev-parse", "HEAD",
            stdout=asyncio.subprocess.PIPE,
            stderr=asyncio.subprocess.PIPE,
        )
        out, err = await proc.communicate()
        if proc.returncode != 0:
            raise UploadError("Could not determine the current commit", err.decode(errors="replace"))
        return out.decode().strip()

    def _changelist(self) -> str:
        ref = self.env.get(TRYJOB_VAR, "")
        match = _PULL_REF.search(ref)
        if not match:
            raise UploadError(f"Cannot parse a pull request number from {TRYJOB_VAR}='{ref}'")
        return match.group(1)

    def _write_keys(self) -> None:
        self.work_dir.mkdir(parents=True, exist_ok=True)
        with open(self._keys_file, "w") as f:
            json.dump(self.dimensions, f, indent=2)

    def _init_args(self, commit: str) -> list[str]:
        return [
            "imgtest", "init",
            "--instance", self.instance,
            "--work-dir", str(self._temp_dir),
            "--commit", commit,
            "--keys-file", str(self._keys_file),
            "--failure-file", str(self._failures_file),
            "--passfail",
        ]

    async def auth(self) -> None:
        if self._authorized:
            return
        self._temp_dir.mkdir(parents=True, exist_ok=True)
        await self._run(
            ["auth", "--work-dir", str(self._temp_dir), "--luci"],
            "Skia Gold authorization failed",
        )
        self._authorized = True

    async def imgtest_init(self) -> None:
        """Start a post-submit session against the current commit."""
        if self._initialized:
            return
        self._write_keys()
        commit = await self._commit()
        await self._run(self._init_args(commit), "Skia Gold imgtest init failed")
        self._initialized = True

    async def tryjob_init(self) -> None:
        """Start a pre-submit session tied to the pull request under review."""
        if self._tryjob_initialized:
            return
        self._write_keys()
        commit = await self._commit()
        args = self._init_args(commit) + [
            "--crs", "github",
            "--patchset_id", commit,
            "--cis", "buildbucket",
            "--changelist", self._changelist(),
            "--jobid", self.env.get(TASK_ID_VAR, ""),
        ]
        await self._run(args, "Skia Gold tryjob init failed")
        self._tryjob_initialized = True

    def _add_args(self, filename: str, png_file: Path) -> list[str]:
        return [
            "imgtest", "add",
            "--work-dir", str(self._temp_dir),
            "--test-name", filename.removesuffix(".png"),
            "--png-file", str(png_file),
        ]

    async def imgtest_add(self, filename: str, png_file: Path) -> None:
        """Ingest a screenshot as a post-submit baseline candidate."""
        async with self._lock:
            await self.auth()
            await self.imgtest_init()
        await self._run(self._add_args(filename, png_file), f"Skia Gold imgtest add failed for {filename}")
        logger.info("Uploaded %s to Skia Gold", filename)

    async def tryjob_add(self, filename: str, png_file: Path) -> None:
        """Attach a screenshot to the pull request's tryjob.

        Untriaged digests are expected in pre-submit and are not treated as
        failures; they show up for triage on the changelist.
        """
        async with self._lock:
            await self.auth()
            await self.tryjob_init()
        try:
            await self._run(self._add_args(filename, png_file), f"Skia Gold tryjob add failed for {filename}")
        except UploadError as e:
            if "untriaged" in e.output.lower():
                logger.info("Tryjob image %s is untriaged in Skia Gold", filename)
                return
            raise
        logger.info("Uploaded %s to Skia Gold tryjob", filename)
