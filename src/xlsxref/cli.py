"""Command line interface for xlsxref with subcommands."""

import argparse
import logging
import sys
from pathlib import Path

from xlsxref import __version__, config, setup_logging
from xlsxref.errors import XlsxrefError
from xlsxref.exporter import EXPORT_FORMATS, build_exporter
from xlsxref.generator import GENERATOR_LANGUAGES, GenerateOption, build_generator
from xlsxref.workbook import Workbook

logger = logging.getLogger(__name__)


def _fail(msg: str, *args):
    logger.error(msg, *args)
    raise XlsxrefError(msg % args if args else msg)


def check_outdir(outdir: Path | None):
    if outdir is None:
        return
    if outdir.is_file():
        _fail("Outdir must be a directory but it is a file.")
    outdir.mkdir(exist_ok=True, parents=True)


def process_common_options(args, raw_args):
    check_outdir(args.outdir)

    # -v lowers, -q raises the level by one step (10) per flag
    loglevel = logging.INFO + (args.quieter - args.verboser) * 10
    if args.logfile is not None:
        args.logfile.parent.mkdir(exist_ok=True, parents=True)
    setup_logging(loglevel, args.logfile)

    logger.info("Executing cmd: xlsxref %s", " ".join(raw_args))

    if args.config is not None:
        if not args.config.exists():
            _fail("Config file not found at: %s", args.config)
        config.load_config(config_file=args.config)

    if not args.FILE.is_file():
        _fail("File not found: %s", args.FILE)


def get_outdir(args) -> Path:
    return args.FILE.parent if args.outdir is None else args.outdir


# ===== subcommands =====


def update(args):
    logger.debug("Update subcommand started!")
    with Workbook.open(args.FILE, writable=True) as workbook:
        workbook.update_reference_data()
        workbook.update_data_validations()
        workbook.save()


def export(args):
    logger.debug("Export subcommand started!")
    fmt = args.format or config.SETTINGS.export.format
    prefix = config.SETTINGS.export.prefix if args.prefix is None else args.prefix
    exporter = build_exporter(fmt, get_outdir(args), prefix)
    with Workbook.open(args.FILE) as workbook:
        workbook.export(exporter)


def resolve_template(template: Path | None) -> Path | None:
    """Template from the command line, or from config relative to its file."""
    if template is not None:
        return template
    template = config.SETTINGS.generate.template
    if template is not None and not template.is_absolute() and config.SETTINGS_PATH:
        return config.SETTINGS_PATH.parent / template
    return template


def generate(args):
    logger.debug("Generate subcommand started!")
    settings = config.SETTINGS.generate
    lang = args.lang or settings.lang
    tag_names = (
        settings.go_tag_names
        if args.tag_name is None
        else [tag.strip() for tag in args.tag_name.split(",") if tag.strip()]
    )
    option = GenerateOption(
        outdir=get_outdir(args),
        prefix=settings.prefix if args.prefix is None else args.prefix,
        template_path=resolve_template(args.template),
        go_package_name=args.package_name or settings.go_package_name,
        go_tag_names=tag_names,
    )
    with Workbook.open(args.FILE) as workbook:
        workbook.generate(build_generator(lang, option))


def meta_export(args):
    logger.debug("Meta export subcommand started!")
    with Workbook.open(args.FILE) as workbook:
        workbook.export_metadata(get_outdir(args))


def show_version(args):
    if args.version:  # pragma: no cover
        print(f"xlsxref {__version__}")


HELP_FORMATTER = argparse.RawDescriptionHelpFormatter


def common_options() -> argparse.ArgumentParser:
    """Options shared by all subcommands that process a workbook."""
    options = argparse.ArgumentParser(add_help=False, allow_abbrev=False)
    verbosity = options.add_mutually_exclusive_group()
    verbosity.add_argument(
        "-v",
        "--verbose",
        action="count",
        default=0,
        dest="verboser",
        help="Log more details; -vv also shows debug messages.",
    )
    verbosity.add_argument(
        "-q",
        "--quiet",
        action="count",
        default=0,
        dest="quieter",
        help="Log less; -qq only shows errors.",
    )
    options.add_argument(
        "--config",
        type=Path,
        metavar="TOML",
        help="Settings file, typically xlsxref.toml.",
    )
    options.add_argument(
        "-O",
        "--outdir",
        type=Path,
        metavar="DIRECTORY",
        help="Directory for written files, created when missing. "
        "Defaults to the directory of FILE.",
    )
    options.add_argument(
        "-l",
        "--logfile",
        type=Path,
        help="Also write the log to this file; missing directories are created.",
    )
    options.add_argument("FILE", type=Path, help="The xlsx workbook to process.")
    return options


def add_commands(subparsers, parents):
    def add(name, func, summary, description):
        command = subparsers.add_parser(
            name,
            help=summary,
            description=description,
            parents=parents,
            formatter_class=HELP_FORMATTER,
        )
        command.set_defaults(func=func)
        return command

    add(
        "update",
        update,
        summary="Update reference data and validations of a workbook.",
        description=(
            "Rewrite the reference data sheet, the defined names and the\n"
            "dropdown validations of FILE from its reference definitions.\n"
            "FILE is changed in place."
        ),
    )

    command = add(
        "export",
        export,
        summary="Export resolved data sheets to csv, json or yaml.",
        description="Resolve the references of every data sheet and write one "
        "file per sheet.",
    )
    command.add_argument(
        "-f",
        "--format",
        choices=EXPORT_FORMATS,
        help="Output format (config: export.format, default csv).",
    )
    command.add_argument(
        "-p", "--prefix", help="Prefix for output file names (config: export.prefix)."
    )

    command = add(
        "generate",
        generate,
        summary="Generate model classes for the data sheets.",
        description="Render a Jinja2 template per resolved data sheet. Go and C#\n"
        "come with a bundled template, the generic language needs --template.",
    )
    command.add_argument(
        "--lang",
        choices=GENERATOR_LANGUAGES,
        help="Output language (config: generate.lang, default go).",
    )
    command.add_argument(
        "-p", "--prefix", help="Prefix for the model names (config: generate.prefix)."
    )
    command.add_argument(
        "-t",
        "--template",
        type=Path,
        metavar="TEMPLATE",
        help="Jinja2 template used instead of the bundled one.",
    )
    golang = command.add_argument_group("go options")
    golang.add_argument("--package-name", help="Package clause, default 'model'.")
    golang.add_argument(
        "--tag-name", help="Comma separated struct tag keys, default 'json'."
    )


def add_meta_commands(subparsers, parents):
    meta = subparsers.add_parser(
        "meta",
        help="Metadata commands.",
        description="Work with the schema of a workbook.",
    )
    meta_subparsers = meta.add_subparsers(
        title="metadata commands", dest="meta_subcommand", required=True
    )
    command = meta_subparsers.add_parser(
        "export",
        help="Export the schema of a workbook as yaml.",
        description="Write the column schema of every data sheet and the\n"
        "reference definitions as yaml files.",
        parents=parents,
        formatter_class=HELP_FORMATTER,
    )
    command.set_defaults(func=meta_export)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="xlsxref",
        description="Resolve, validate and export reference data kept in "
        "Excel (xlsx) workbooks.",
        allow_abbrev=False,
        formatter_class=HELP_FORMATTER,
    )
    parser.add_argument(
        "-V", "--version", action="store_true", help="Show the version and exit."
    )
    parser.set_defaults(func=show_version)

    subparsers = parser.add_subparsers(
        title="subcommands",
        dest="subcommand",
        description="Run 'xlsxref COMMAND --help' for the options of a command.",
    )
    parents = [common_options()]
    add_commands(subparsers, parents)
    add_meta_commands(subparsers, parents)
    return parser


def main_cli(raw_args=None):
    """Parse ``raw_args`` and run the selected subcommand."""
    parser = build_parser()
    if not raw_args:
        parser.print_help()
        return

    # argparse exits with code 2 on invalid arguments
    args = parser.parse_args(raw_args)
    if hasattr(args, "FILE"):
        process_common_options(args, raw_args)
    args.func(args)


def log_error_chain(err: BaseException) -> None:
    logger.error("Terminating with error: %s", err)
    cause = err.__cause__
    while cause is not None:
        logger.error("Caused by: %s", cause)
        cause = cause.__cause__


def run_cli_app(raw_args=None):
    """Entry point of the xlsxref console script."""
    if raw_args is None:
        raw_args = sys.argv[1:]
    try:
        main_cli(raw_args)
    except XlsxrefError as err:
        log_error_chain(err)
        sys.exit(1)
    except Exception:  # pragma: no cover
        logger.exception("Unexpected error.")
        sys.exit(3)


if __name__ == "__main__":
    run_cli_app()
