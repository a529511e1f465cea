from __future__ import annotations

import argparse
import logging
import sys
from typing import List, Optional

import yaml

from manifest import ManifestError
from naming import DEFAULT_POLICY
from transform import format_report, uninject_manifests
from uninject import Uninjector


def _read_inputs(paths: List[str]) -> List[bytes]:
    if not paths:
        return [sys.stdin.buffer.read()]
    out = []
    for path in paths:
        if path == "-":
            out.append(sys.stdin.buffer.read())
        else:
            with open(path, "rb") as f:
                out.append(f.read())
    return out


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="Remove the injected proxy sidecar, init container, volumes and marker metadata from manifests."
    )
    parser.add_argument("-f", "--file", action="append", default=[], help="Input YAML/JSON file ('-' for stdin). Repeatable.")
    parser.add_argument("--prefix", help=f"Reserved annotation/label prefix (default: {DEFAULT_POLICY.prefix})")
    parser.add_argument("--proxy-container-name", help=f"default: {DEFAULT_POLICY.proxy_container_name}")
    parser.add_argument("--init-container-name", help=f"default: {DEFAULT_POLICY.init_container_name}")
    parser.add_argument("-v", "--verbose", action="store_true", help="Debug logging on stderr")
    return parser


def main(argv: Optional[List[str]] = None) -> int:
    args = build_parser().parse_args(argv)
    logging.basicConfig(level=logging.DEBUG if args.verbose else logging.WARNING)

    policy = DEFAULT_POLICY.with_overrides(
        prefix=args.prefix,
        proxy_container_name=args.proxy_container_name,
        init_container_name=args.init_container_name,
    )
    uninjector = Uninjector(policy)

    outputs = []
    reports = []
    try:
        for data in _read_inputs(args.file):
            out, file_reports = uninject_manifests(data, uninjector)
            if out:
                outputs.append(out)
            reports.extend(file_reports)
    except (ManifestError, yaml.YAMLError, OSError) as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1

    sys.stdout.write(b"---\n".join(outputs).decode("utf-8"))
    if reports:
        print(format_report(reports), file=sys.stderr)
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
