"""
ingest.py — Upload PDFs and build a hosted vector store
========================================================

The hosted service does all the heavy lifting (parsing, chunking,
embedding, indexing). Our job is ordering:

  1. Find the PDFs
  2. Upload every file and collect the file ids
  3. Create ONE vector store over those ids
  4. Wait until the store reports status "completed"

Step 4 matters: searching a store that is still "in_progress" returns
partial (or empty) results with no error, so retrieval silently looks
broken. We poll until the index is done, with a timeout so a stuck
store can't hang the program forever.

Usage:
  from docchat.ingest import build_store
  store, files = build_store(client, settings)
"""

import time
from pathlib import Path

from docchat.config import Settings


class IndexingError(RuntimeError):
    """The vector store reached a terminal state other than completed."""


class IndexingTimeout(IndexingError):
    """The vector store did not finish indexing in time."""


# Statuses after which "completed" can never be reached
TERMINAL_STATUSES = {"expired", "failed", "cancelled"}


def find_documents(directory: str | Path) -> list[Path]:
    """All PDFs in `directory`, sorted by name."""
    directory = Path(directory)
    if not directory.is_dir():
        raise FileNotFoundError(f"Documents directory not found: {directory}")

    docs = sorted(p for p in directory.iterdir()
                  if p.is_file() and p.suffix.lower() == ".pdf")
    if not docs:
        raise ValueError(f"No PDF files in {directory}")
    return docs


def upload_documents(client, paths: list[Path], files: list | None = None) -> list:
    """
    Upload each PDF to the file store, in order.

    Returns the file objects (each has an .id). Pass `files` to collect
    them in a caller-owned list, so uploads made before a failure are
    still known. A failed upload raises straight through: there is no
    point creating a store over a partial document set.
    """
    if files is None:
        files = []
    for i, path in enumerate(paths, 1):
        print(f"  [{i}/{len(paths)}] uploading {path.name}...", end=" ", flush=True)
        with open(path, "rb") as fh:
            uploaded = client.files.create(file=fh, purpose="assistants")
        print(uploaded.id)
        files.append(uploaded)
    return files


def create_store(client, name: str, files: list):
    """Create a vector store referencing every uploaded file."""
    return client.vector_stores.create(
        name=name,
        file_ids=[f.id for f in files],
    )


def wait_until_ready(
    client,
    store,
    interval: float = 0.5,
    timeout: float | None = 600.0,
    backoff: float = 1.0,
    max_interval: float = 5.0,
    sleep=time.sleep,
    clock=time.monotonic,
):
    """
    Poll the store until its status is "completed" and return the
    freshest copy.

    Sleeps `interval` seconds between polls. With backoff > 1 the delay
    grows geometrically up to `max_interval`; backoff == 1 gives a fixed
    polling rate. timeout=None waits forever.
    """
    deadline = None if timeout is None else clock() + timeout
    delay = interval

    while store.status != "completed":
        if store.status in TERMINAL_STATUSES:
            raise IndexingError(
                f"Vector store {store.id} ended with status {store.status!r}"
            )
        if deadline is not None and clock() >= deadline:
            raise IndexingTimeout(
                f"Vector store {store.id} still {store.status!r} after {timeout:g}s"
            )
        sleep(delay)
        delay = min(delay * backoff, max_interval)
        store = client.vector_stores.retrieve(store.id)

    return store


def _wait(client, store, settings: Settings):
    print(f"  Waiting for vector store {store.id} to finish indexing...",
          end=" ", flush=True)
    store = wait_until_ready(
        client, store,
        interval=settings.poll_interval,
        timeout=settings.poll_timeout,
        backoff=settings.poll_backoff,
        max_interval=settings.poll_max_interval,
    )
    print("done")
    return store


def build_store(client, settings: Settings, cleanup: bool = False) -> tuple:
    """
    Full ingestion: find → upload → create → wait. Returns (store, files).

    With cleanup=True, a failure at any step deletes whatever was already
    created remotely (uploaded files, the store) before re-raising.
    """
    docs = find_documents(settings.documents_dir)
    files = []
    store = None
    try:
        print(f"\n[1/3] Uploading {len(docs)} documents from {settings.documents_dir}...")
        upload_documents(client, docs, files)

        print(f"\n[2/3] Creating vector store {settings.store_name!r}...")
        store = create_store(client, settings.store_name, files)

        print("\n[3/3] Indexing...")
        store = _wait(client, store, settings)
    except (Exception, KeyboardInterrupt):
        if cleanup:
            delete_store(client, store, files)
        raise
    return store, files


def open_store(client, store_id: str, settings: Settings):
    """Attach to an existing vector store instead of uploading again."""
    print(f"\nOpening vector store {store_id}...")
    store = client.vector_stores.retrieve(store_id)
    return _wait(client, store, settings)


def delete_store(client, store, files: list):
    """Remove the vector store (if any) and the files uploaded for it."""
    if store is not None:
        client.vector_stores.delete(store.id)
    for f in files:
        client.files.delete(f.id)
    label = store.id if store is not None else "no store"
    print(f"Deleted {label} and {len(files)} files")
