"""CLI entrypoints for docmeta commands."""

from __future__ import annotations

import argparse
import json
import sys
from pathlib import Path
from typing import List

from .config import ConfigError, load_config
from .git.publisher import PublishError
from .http import UpstreamError
from .logging import configure_logging
from .orchestrator import Orchestrator


def _add_common_options(
    parser: argparse.ArgumentParser, *, suppress_default: bool = False
) -> None:
    verbose_kwargs: dict[str, object] = {
        "action": "store_true",
        "help": "Increase log verbosity for troubleshooting.",
    }
    config_kwargs: dict[str, object] = {
        "help": "Path to .docmeta.yml or the directory holding it (defaults to current directory).",
    }
    log_file_kwargs: dict[str, object] = {"help": "Also write log records to this file."}
    if suppress_default:
        verbose_kwargs["default"] = argparse.SUPPRESS
        config_kwargs["default"] = argparse.SUPPRESS
        log_file_kwargs["default"] = argparse.SUPPRESS
    else:
        verbose_kwargs["default"] = False
        config_kwargs["default"] = "."
        log_file_kwargs["default"] = None
    parser.add_argument("-v", "--verbose", **verbose_kwargs)
    parser.add_argument("--config", **config_kwargs)
    parser.add_argument("--log-file", **log_file_kwargs)


def _parse_file_list(value: str) -> List[str]:
    """Accept either a JSON array or a comma/newline separated list of paths."""
    text = value.strip()
    if not text:
        return []
    if text.startswith("["):
        try:
            loaded = json.loads(text)
        except json.JSONDecodeError as exc:
            raise argparse.ArgumentTypeError(f"invalid JSON file list: {exc}") from exc
        if not isinstance(loaded, list):
            raise argparse.ArgumentTypeError("file list must be a JSON array")
        return [str(item) for item in loaded if str(item).strip()]
    parts = text.replace("\n", ",").split(",")
    return [part.strip() for part in parts if part.strip()]


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="docmeta",
        description="Generate and publish documentation frontmatter with a language model.",
    )
    _add_common_options(parser)
    subparsers = parser.add_subparsers(dest="command", required=True)

    fetch_changed = subparsers.add_parser(
        "fetch-changed", help="Collect changed documentation pages into a batch file."
    )
    _add_common_options(fetch_changed, suppress_default=True)
    fetch_changed.add_argument(
        "--files",
        required=True,
        type=_parse_file_list,
        help="Changed files as a JSON array or comma-separated list.",
    )
    fetch_changed.add_argument("--output", help="Batch file to write.")

    fetch_pr = subparsers.add_parser(
        "fetch-pr", help="Collect documentation pages touched by a pull request."
    )
    _add_common_options(fetch_pr, suppress_default=True)
    fetch_pr.add_argument("--pr", required=True, help="Pull request number.")
    fetch_pr.add_argument("--output", help="Batch file to write.")

    fetch_all = subparsers.add_parser(
        "fetch-all", help="Collect every documentation page under the pages root."
    )
    _add_common_options(fetch_all, suppress_default=True)
    fetch_all.add_argument("--output", help="Batch file to write.")

    generate = subparsers.add_parser(
        "generate", help="Generate frontmatter for every page in a batch file."
    )
    _add_common_options(generate, suppress_default=True)
    generate.add_argument("--input", help="Batch file to read.")
    generate.add_argument("--output", help="Generated metadata file to write.")

    create_pr = subparsers.add_parser(
        "create-pr", help="Commit generated frontmatter and open a pull request."
    )
    _add_common_options(create_pr, suppress_default=True)
    create_pr.add_argument("--input", help="Generated metadata file to read.")

    review = subparsers.add_parser(
        "review", help="Post generated frontmatter as pull request review suggestions."
    )
    _add_common_options(review, suppress_default=True)
    review.add_argument("--pr", required=True, help="Pull request number.")
    review.add_argument("--input", help="Generated metadata file to read.")

    deploy = subparsers.add_parser(
        "deploy", help="Run an edge operation (preview, live, cache) for changed pages."
    )
    _add_common_options(deploy, suppress_default=True)
    deploy.add_argument("--operation", required=True, help="Edge operation to run.")
    deploy.add_argument("--env", required=True, help="Deploy environment name (e.g. stage, prod).")
    deploy.add_argument("--changes", type=_parse_file_list, default=[], help="Changed files.")
    deploy.add_argument("--deletions", type=_parse_file_list, default=[], help="Deleted files.")
    deploy.add_argument("--branch", help="Content branch for stage previews.")

    summarize = subparsers.add_parser(
        "summarize", help="Generate bulleted summaries of changed pages from their previews."
    )
    _add_common_options(summarize, suppress_default=True)
    summarize.add_argument(
        "--env", required=True, help="Preview environment name (e.g. stage, prod)."
    )
    summarize.add_argument("--changes", type=_parse_file_list, default=[], help="Changed files.")
    summarize.add_argument("--branch", help="Branch the previews are served from.")
    summarize.add_argument("--output", help="Summary file to write.")

    serve = subparsers.add_parser("serve", help="Run the HTTP service.")
    _add_common_options(serve, suppress_default=True)
    serve.add_argument("--host", default="127.0.0.1")
    serve.add_argument("--port", type=int, default=8000)

    return parser


def main(argv: list[str] | None = None) -> None:
    """CLI entrypoint for docmeta commands."""
    parser = _build_parser()
    args = parser.parse_args(argv)

    log_file = Path(args.log_file) if args.log_file else None
    configure_logging(verbose=bool(args.verbose), log_file=log_file)

    try:
        config = load_config(Path(args.config))
    except ConfigError as exc:
        parser.exit(1, f"{exc}\n")

    if args.command == "serve":
        from .service.app import run_service

        run_service(host=args.host, port=args.port, config_path=Path(args.config))
        return

    orchestrator = Orchestrator(config)
    try:
        _dispatch(args, orchestrator)
    except ConfigError as exc:
        parser.exit(1, f"{exc}\n")
    except (UpstreamError, PublishError) as exc:
        parser.exit(1, f"docmeta {args.command} failed: {exc}\nRun with --verbose for more details.\n")


def _dispatch(args: argparse.Namespace, orchestrator: Orchestrator) -> None:
    if args.command == "fetch-changed":
        outcome = orchestrator.run_fetch_changed(args.files, args.output)
        print(f"Wrote {outcome.count} pages to {_relativize(outcome.path)}")
    elif args.command == "fetch-pr":
        outcome = orchestrator.run_fetch_pull_request(args.pr, args.output)
        print(f"Wrote {outcome.count} pages to {_relativize(outcome.path)}")
    elif args.command == "fetch-all":
        outcome = orchestrator.run_fetch_all(args.output)
        print(f"Wrote {outcome.count} pages to {_relativize(outcome.path)}")
    elif args.command == "generate":
        result = orchestrator.run_generate(args.input, args.output)
        if result.empty:
            print("No documents to process; nothing generated")
        else:
            print(f"Generated metadata for {len(result.generated)} documents")
    elif args.command == "create-pr":
        publish = orchestrator.run_create_pr(args.input)
        if publish is None:
            print("No generated metadata; skipping pull request")
        elif publish.status == "unchanged":
            print("Metadata already up to date; no commit created")
        else:
            print(f"Pull request updated with {len(publish.paths)} files {publish.url or ''}".rstrip())
    elif args.command == "review":
        publish = orchestrator.run_review(args.pr, args.input)
        if publish is None:
            print("No generated metadata; skipping review")
        else:
            print(f"Review posted with {len(publish.paths)} suggestions {publish.url or ''}".rstrip())
    elif args.command == "deploy":
        report = orchestrator.run_deploy(
            args.changes, args.deletions, args.operation, args.env, branch=args.branch
        )
        print(f"Operation: {report.operation}")
        for path, status, note in report.as_rows():
            print(f"{status:<8} {path}  {note}")
    elif args.command == "summarize":
        summary = orchestrator.run_summarize(
            args.changes, args.env, branch=args.branch, output=args.output
        )
        print(f"Wrote {len(summary.summarized)} summaries to {_relativize(summary.path)}")
    else:  # pragma: no cover - argparse enforces choices
        raise ConfigError(f"Unknown command {args.command}")


def _relativize(path: Path) -> str:
    try:
        return str(path.relative_to(Path.cwd()))
    except ValueError:
        return str(path)


if __name__ == "__main__":
    main(sys.argv[1:])
