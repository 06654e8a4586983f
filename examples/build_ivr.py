#
# Copyright (c) 2024, Daily
#
# SPDX-License-Identifier: BSD 2-Clause License
#

"""Build a small inbound IVR and export it as an Asterisk dialplan.

Usage:
    DIALPLAN_API_URL=https://pbx.example.com/api \
    DIALPLAN_API_TOKEN=... DIALPLAN_TENANT_ID=acme \
    python examples/build_ivr.py --project 42 --out ./build

The script adds an extension node, a dial node and a hangup node to the first
context of the project, wires them up, validates the project and writes
`<project-name>.conf` to the output directory.
"""

import argparse
import asyncio
import sys

from loguru import logger

from dialplan_flows import (
    ClientConfig,
    DialplanClient,
    DialplanEditorSession,
    NodeCategory,
    RecordingNotifier,
)

logger.remove(0)
logger.add(sys.stderr, level="DEBUG")


def first_of(session: DialplanEditorSession, category: NodeCategory, keyword: str = ""):
    for node_type in session.catalog.by_category(category):
        if keyword.lower() in node_type.name.lower():
            return node_type
    raise SystemExit(f"No {category.value} node type matching '{keyword}'")


async def main(project_id: int, out: str):
    notifier = RecordingNotifier()
    async with DialplanClient(ClientConfig.from_env()) as client:
        session = DialplanEditorSession(client, notifier)

        await session.check_capabilities()
        if session.read_only:
            logger.error("Backend cannot generate dialplans; nothing to do")
            return

        if not await session.load_project(project_id) or session.graph is None:
            return

        extension = first_of(session, NodeCategory.EXTENSION)
        dial = first_of(session, NodeCategory.APPLICATION, "dial")
        hangup = first_of(session, NodeCategory.TERMINAL, "hangup")

        start = await session.create_node(extension.id, {"x": 100, "y": 100}, name="inbound")
        ring = await session.create_node(
            dial.id,
            {"x": 350, "y": 100},
            name="ring-sales",
            properties={**dial.derive_properties(), "destination": "SIP/sales"},
        )
        end = await session.create_node(hangup.id, {"x": 600, "y": 100}, name="bye")
        if not (start and ring and end):
            return

        await session.create_connection(start.id, ring.id)
        await session.create_connection(ring.id, end.id)

        local = session.validate_locally()
        for issue in local.errors + local.warnings:
            logger.info(f"Pre-flight: {issue}")

        result = await session.validate_project()
        if result is None or not result.valid:
            return

        path = await session.export_dialplan(out)
        if path:
            logger.info(f"Dialplan written to {path}")

    for notification in notifier.drain():
        print(f"{notification.level:>8}: {notification.message}")


if __name__ == "__main__":
    parser = argparse.ArgumentParser(description="Build and export a sample IVR")
    parser.add_argument("--project", type=int, required=True, help="Dial plan project id")
    parser.add_argument("--out", default=".", help="Directory for the generated .conf file")
    args = parser.parse_args()

    asyncio.run(main(args.project, args.out))
