# Copyright 2026 Cisco Systems, Inc.
#
# Licensed under the Apache License, Version 2.0 (the "License");
# you may not use this file except in compliance with the License.
# You may obtain a copy of the License at
#
#     http://www.apache.org/licenses/LICENSE-2.0
#
# Unless required by applicable law or agreed to in writing, software
# distributed under the License is distributed on an "AS IS" BASIS,
# WITHOUT WARRANTIES OR CONDITIONS OF ANY KIND, either express or implied.
# See the License for the specific language governing permissions and
# limitations under the License.
#
# SPDX-License-Identifier: Apache-2.0

"""
Standalone REST API server for Site Audit.

All endpoints live in ``router.py``; this module parses the server options
and starts uvicorn on :data:`site_audit.api.api.app`.  The app builds its
checklist from the ``SITE_AUDIT_*`` environment on the first request, so an
``--env-file`` is loaded before uvicorn starts.
"""

from __future__ import annotations

import argparse
import logging
import os

from dotenv import load_dotenv

logger = logging.getLogger("site_audit.api")

DEFAULT_HOST = "localhost"
DEFAULT_PORT = 8000


def run_server(host: str = DEFAULT_HOST, port: int = DEFAULT_PORT, reload: bool = False) -> None:
    """Run the API server.

    Args:
        host: Host to bind to.
        port: Port to bind to.
        reload: Enable auto-reload for development.
    """
    import uvicorn

    logger.info("Serving Site Audit API on %s:%d", host, port)
    uvicorn.run("site_audit.api.api:app", host=host, port=port, reload=reload)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="site-audit-api", description="Site Audit REST API server")
    parser.add_argument(
        "--host",
        default=os.getenv("SITE_AUDIT_API_HOST", DEFAULT_HOST),
        help=f"Host to bind to (SITE_AUDIT_API_HOST, default: {DEFAULT_HOST})",
    )
    parser.add_argument(
        "--port",
        type=int,
        default=int(os.getenv("SITE_AUDIT_API_PORT", DEFAULT_PORT)),
        help=f"Port to bind to (SITE_AUDIT_API_PORT, default: {DEFAULT_PORT})",
    )
    parser.add_argument("--reload", action="store_true", help="Enable auto-reload for development")
    parser.add_argument("--env-file", metavar="PATH", help="Load SITE_AUDIT_* settings from a .env file")
    return parser


def main(argv: list[str] | None = None) -> int:
    """Console entry point for ``site-audit-api``."""
    args = build_parser().parse_args(argv)
    logging.basicConfig(level=logging.INFO, format="%(levelname)s %(name)s: %(message)s")

    if args.env_file:
        if not os.path.exists(args.env_file):
            logger.error("Env file not found: %s", args.env_file)
            return 1
        load_dotenv(args.env_file, override=True)

    run_server(host=args.host, port=args.port, reload=args.reload)
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
