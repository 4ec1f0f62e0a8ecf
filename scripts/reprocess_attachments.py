#!/usr/bin/env python3
from __future__ import annotations

import argparse
import asyncio
from dataclasses import dataclass
from uuid import UUID

from sqlalchemy import func, select

from medchat.core.logging_setup import configure_logging
from medchat.db.models import Message
from medchat.db.session import async_engine, session_scope
from medchat.features.attachments import ExtractionStatus, FileAttachment, parse_attachments
from medchat.features.chat import reprocess_message_attachments


@dataclass
class ReprocessStats:
    scanned_messages: int
    pending_messages: int
    updated_messages: int
    still_failed: int


def parse_args() -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        description="Retry text extraction for stored message attachments that are pending or failed.",
    )
    parser.add_argument(
        "--chat-id",
        type=UUID,
        default=None,
        help="Only reprocess messages of this chat.",
    )
    parser.add_argument(
        "--limit",
        type=int,
        default=500,
        help="Maximum number of messages to scan (default: 500).",
    )
    parser.add_argument(
        "--yes",
        action="store_true",
        help="Write the results back without interactive confirmation.",
    )
    parser.add_argument(
        "--dry-run",
        action="store_true",
        help="Only print which messages would be reprocessed.",
    )
    args = parser.parse_args()

    if args.limit <= 0:
        raise SystemExit("--limit must be greater than 0.")
    return args


def needs_reprocessing(raw_attachments: list[dict]) -> bool:
    return any(
        isinstance(item, FileAttachment) and not item.is_extracted
        for item in parse_attachments(raw_attachments)
    )


async def find_candidate_messages(args: argparse.Namespace) -> tuple[int, list[UUID]]:
    stmt = (
        select(Message.id, Message.attachments)
        .where(func.jsonb_array_length(Message.attachments) > 0)
        .order_by(Message.created_at.asc(), Message.id.asc())
        .limit(args.limit)
    )
    if args.chat_id is not None:
        stmt = stmt.where(Message.chat_id == args.chat_id)

    async with session_scope() as session:
        rows = (await session.execute(stmt)).all()
    candidates = [message_id for message_id, attachments in rows if needs_reprocessing(attachments)]
    return len(rows), candidates


async def reprocess(candidates: list[UUID]) -> tuple[int, int]:
    updated = 0
    still_failed = 0
    async with session_scope() as session:
        for message_id in candidates:
            message = await reprocess_message_attachments(session, message_id)
            updated += 1
            still_failed += sum(
                1
                for item in parse_attachments(message.attachments)
                if isinstance(item, FileAttachment)
                and item.extraction_status is ExtractionStatus.FAILED
            )
    return updated, still_failed


async def main() -> int:
    configure_logging()
    args = parse_args()

    scanned, candidates = await find_candidate_messages(args)
    print("Reprocess plan")
    print(f"- scanned_messages: {scanned}")
    print(f"- messages_to_reprocess: {len(candidates)}")

    if args.dry_run:
        for message_id in candidates:
            print(f"  - {message_id}")
        print("Dry run complete. No data was changed.")
        return 0

    if not candidates:
        print("Nothing to do.")
        return 0

    if not args.yes:
        print("Aborted: pass --yes to write results (or --dry-run to preview).")
        return 1

    updated, still_failed = await reprocess(candidates)
    stats = ReprocessStats(
        scanned_messages=scanned,
        pending_messages=len(candidates),
        updated_messages=updated,
        still_failed=still_failed,
    )
    print("Reprocess complete")
    print(f"- updated_messages: {stats.updated_messages}")
    print(f"- attachments_still_failed: {stats.still_failed}")
    return 0


if __name__ == "__main__":
    try:
        raise SystemExit(asyncio.run(main()))
    finally:
        asyncio.run(async_engine.dispose())
