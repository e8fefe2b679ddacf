"""Rebuild the bundled viewer files from an upstream checkout at a given ref."""

from __future__ import annotations

import argparse
import os
import shutil
import subprocess
import sys
import tempfile
from collections.abc import Sequence
from pathlib import Path


class _Failure(Exception):
    """A step failed; the message is reported and the command exits with 1."""


def clear_dir(path: str | os.PathLike[str]) -> None:
    """Remove everything inside the directory but keep the directory."""
    for entry in Path(path).iterdir():
        if entry.is_dir() and not entry.is_symlink():
            shutil.rmtree(entry)
        else:
            entry.unlink()


def copy_dir_contents(src: str | os.PathLike[str], dst: str | os.PathLike[str]) -> None:
    """Copy the tree under ``src`` into ``dst``, keeping structure and file modes."""
    shutil.copytree(src, dst, dirs_exist_ok=True, copy_function=shutil.copy)


def _run(args: list[str], cwd: Path | None = None) -> None:
    try:
        subprocess.run(args, cwd=cwd, check=True)
    except (OSError, subprocess.CalledProcessError) as exc:
        raise _Failure(f"command failed: {' '.join(args)} ({exc})") from exc


def _run_output(args: list[str], cwd: Path) -> str:
    try:
        result = subprocess.run(args, cwd=cwd, check=True, capture_output=True, text=True)
    except (OSError, subprocess.CalledProcessError) as exc:
        raise _Failure(f"command failed: {' '.join(args)} ({exc})") from exc
    return result.stdout or ""


def _parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="refresh-viewer-assets",
        description="Refreshes viewer_assets/dist from an upstream MeshCat build.",
    )
    parser.add_argument(
        "-ref", "--ref", default="master", help="upstream git ref: branch, tag, or commit hash"
    )
    parser.add_argument(
        "-repo-url", "--repo-url", dest="repo_url", required=True,
        help="upstream MeshCat git repository URL",
    )
    parser.add_argument(
        "-out", "--out", default="viewer_assets/dist",
        help="destination directory for vendored dist files",
    )
    return parser


def _refresh(ref: str, repo_url: str, out: str) -> None:
    for tool in ("git", "npm"):
        if shutil.which(tool) is None:
            raise _Failure(f"required tool not found in PATH: {tool}")

    out_dir = Path(os.path.abspath(out))

    with tempfile.TemporaryDirectory(prefix="meshcat-refresh-") as tmp:
        upstream = Path(tmp) / "meshcat"

        print("Cloning upstream MeshCat repository...", flush=True)
        _run(["git", "clone", repo_url, str(upstream)])

        print(f"Checking out ref: {ref}", flush=True)
        _run(["git", "checkout", ref], upstream)

        print("Installing npm dependencies...", flush=True)
        _run(["npm", "install"], upstream)

        print("Building viewer dist assets...", flush=True)
        _run(["npm", "run", "build"], upstream)

        src_dist = upstream / "dist"
        if not src_dist.is_dir():
            raise _Failure("upstream build did not produce dist directory")

        try:
            out_dir.mkdir(parents=True, exist_ok=True)
        except OSError as exc:
            raise _Failure(f"create output directory: {exc}") from exc
        try:
            clear_dir(out_dir)
        except OSError as exc:
            raise _Failure(f"clear output directory: {exc}") from exc
        try:
            copy_dir_contents(src_dist, out_dir)
        except (OSError, shutil.Error) as exc:
            raise _Failure(f"copy built assets: {exc}") from exc

        commit = _run_output(["git", "rev-parse", "HEAD"], upstream).strip()

    print(f"Refreshed vendored viewer assets in {out_dir}")
    print(f"Upstream commit: {commit}")


def main(argv: Sequence[str] | None = None) -> int:
    """Build the viewer upstream and copy its dist output into place."""
    options = _parser().parse_args(argv)
    try:
        _refresh(options.ref, options.repo_url, options.out)
    except _Failure as exc:
        print(f"error: {exc}", file=sys.stderr)
        return 1
    return 0


if __name__ == "__main__":
    sys.exit(main())