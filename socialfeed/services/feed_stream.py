"""
Newline-delimited JSON encoding of a feed page.

Event order: one "metadata", then one "post" per post as soon as its media
is loaded, then exactly one terminal event, "complete" or "error".
"""

import json
import logging
import time

from socialfeed.db import db
from socialfeed.schemas.post_schema import PostSchema
from socialfeed.services import feed_service

logger = logging.getLogger(__name__)

NDJSON_MIMETYPE = "application/x-ndjson"
STREAM_ERROR_MESSAGE = "Failed to load posts"
TERMINAL_EVENTS = ("complete", "error")


def feed_events(cursor, author_id=None, delay=0.0):
    """
    Yield feed events as dicts.

    A client disconnect closes this generator at its current yield; the
    resulting GeneratorExit is not an Exception, so it ends the stream
    without an error event and before any further media query.
    """
    schema = PostSchema()
    try:
        summaries, has_more = feed_service.fetch_summaries(cursor, author_id)
        yield {"type": "metadata", "hasMore": has_more, "total": len(summaries)}

        for index, summary in enumerate(summaries):
            post = feed_service.assemble_post(summary)
            yield {"type": "post", "post": schema.dump(post)}

            if delay and index < len(summaries) - 1:
                time.sleep(delay)
    except Exception:
        logger.exception(
            "Error streaming posts (page=%s, limit=%s)", cursor.page, cursor.limit
        )
        db.session.rollback()
        yield {"type": "error", "message": STREAM_ERROR_MESSAGE}
        return

    yield {"type": "complete"}


def encode_event(event) -> bytes:
    return (json.dumps(event, separators=(",", ":")) + "\n").encode("utf-8")


def ndjson_stream(events):
    for event in events:
        yield encode_event(event)


def iter_stream_events(chunks):
    """
    Decode NDJSON chunks back into events.

    Chunks may split lines anywhere; partial lines are buffered until their
    newline arrives and blank lines are skipped.
    """
    buffer = b""
    for chunk in chunks:
        if isinstance(chunk, str):
            chunk = chunk.encode("utf-8")
        buffer += chunk
        *lines, buffer = buffer.split(b"\n")
        for line in lines:
            if line.strip():
                yield json.loads(line)

    if buffer.strip():
        yield json.loads(buffer)
