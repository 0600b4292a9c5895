"""
ask.py — Chat with your PDFs through a hosted vector store
===========================================================

Usage:
  uv run docchat                                # upload documents/*.pdf, then chat
  uv run docchat "What is FreeBSD?"             # answer one question and exit

  # Reuse a store from an earlier run (skips the upload)
  uv run docchat --store vs_abc123

  # Other options
  uv run docchat --docs handbook/ --model claude
  uv run docchat --cleanup                      # delete store + files on exit
  uv run docchat --list-models

Inside the chat:
  models            list presets
  switch <preset>   change chat model
  quit / exit       stop (or Ctrl-D)
"""

import sys
from pathlib import Path

import openai

from docchat.config import ConfigError, load_settings
from docchat.generator import API_ERRORS, RAGGenerator, list_presets
from docchat.ingest import IndexingError, build_store, delete_store, open_store
from docchat.retriever import VectorStoreRetriever


def parse_args(argv: list[str]) -> dict:
    """
    Simple arg parser.

    Parses:
      docchat [query] [--model preset] [--store id] [--docs dir]
              [--cleanup] [--list-models]
    """
    args = {
        "query": None,
        "model": None,
        "store": None,
        "docs": None,
        "cleanup": False,
        "list_models": False,
    }

    positional = []
    i = 0
    while i < len(argv):
        if argv[i] in ("--model", "--store", "--docs") and i + 1 < len(argv):
            args[argv[i][2:]] = argv[i + 1]
            i += 2
        elif argv[i] == "--cleanup":
            args["cleanup"] = True
            i += 1
        elif argv[i] == "--list-models":
            args["list_models"] = True
            i += 1
        elif argv[i].startswith("--"):
            i += 1  # skip unknown flags
        else:
            positional.append(argv[i])
            i += 1

    if positional:
        args["query"] = " ".join(positional)

    return args


def ask(query: str, retriever: VectorStoreRetriever, generator: RAGGenerator, out=None):
    """Retrieve, then stream one answer."""
    out = out or sys.stdout
    results = retriever.search(query)
    out.write(f"  [{len(results)} chunks above {retriever.threshold}]\n")
    answer = generator.answer(query, results, out=out)
    out.write("\n")
    return answer


def run_loop(retriever: VectorStoreRetriever, generator: RAGGenerator,
             read=input, out=None):
    """
    Interactive chat until end-of-input.

    Remote API errors are reported as "<ErrorClass>: <message>" and the
    loop moves on to the next question. Everything else propagates.
    """
    out = out or sys.stdout
    while True:
        try:
            user_input = read("> ").strip()
        except (EOFError, KeyboardInterrupt):
            out.write("\nBye!\n")
            break

        if not user_input:
            continue
        if user_input.lower() in ("quit", "exit", "q"):
            out.write("Bye!\n")
            break

        if user_input.lower() == "models":
            out.write(list_presets() + "\n")
            continue

        # Allow switching models mid-session
        if user_input.lower().startswith("switch "):
            new_preset = user_input.split(None, 1)[1].strip()
            try:
                generator.switch(new_preset)
                out.write(f"  Switched to {new_preset}\n")
            except ValueError as e:
                out.write(f"  Error: {e}\n")
            continue

        try:
            ask(user_input, retriever, generator, out=out)
        except API_ERRORS as e:
            out.write(f"{type(e).__name__}: {e}\n")


def main():
    """Entry point for `uv run docchat`"""
    args = parse_args(sys.argv[1:])

    if args["list_models"]:
        print(list_presets())
        sys.exit(0)

    try:
        settings = load_settings()
    except ConfigError as e:
        print(f"Error: {e}", file=sys.stderr)
        sys.exit(1)

    if args["docs"]:
        settings.documents_dir = Path(args["docs"])
    if args["model"]:
        settings.model = args["model"]

    print(f"\n{'='*70}")
    print(f"  docchat — {settings.store_name}")
    print(f"  Model: {settings.model}")
    print(f"{'='*70}")

    try:
        generator = RAGGenerator(
            preset=settings.model,
            template_path=settings.prompt_path,
            store_name=settings.store_name,
            api_key=settings.api_key,
        )
    except ValueError as e:
        print(f"Error: {e}", file=sys.stderr)
        sys.exit(1)
    print(f"Generator ready: {generator.backend.name}/{generator.model}")

    client = openai.OpenAI(api_key=settings.api_key)

    files = []
    try:
        if args["store"]:
            store = open_store(client, args["store"], settings)
        else:
            # On failure, build_store removes what it already uploaded
            store, files = build_store(client, settings, cleanup=args["cleanup"])
    except IndexingError as e:
        print(f"Error: {e}", file=sys.stderr)
        sys.exit(1)

    retriever = VectorStoreRetriever(
        client, store.id,
        threshold=settings.score_threshold,
        max_results=settings.max_results,
    )

    try:
        if args["query"]:
            try:
                ask(args["query"], retriever, generator)
            except API_ERRORS as e:
                print(f"{type(e).__name__}: {e}", file=sys.stderr)
                sys.exit(1)
            return

        print(f"\n{'='*70}")
        print(f"  Ready! Ask questions about {settings.store_name}. (store: {store.id})")
        print(f"  Type 'quit' or press Ctrl-D to stop, 'switch <preset>' to change model.")
        print(f"{'='*70}")
        run_loop(retriever, generator)
    finally:
        if args["cleanup"]:
            delete_store(client, store, files)


if __name__ == "__main__":
    main()
