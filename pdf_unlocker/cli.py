#!/usr/bin/env python3
"""
Command-line interface for the PDF Unlocker.
"""

import argparse
import getpass
import os
import platform
import sys
from typing import Optional

from tqdm import tqdm

from pdf_unlocker.core.controller import ProcessingController
from pdf_unlocker.core.models import SelectedFile, unlocked_filename
from pdf_unlocker.core.state import Decrypting, Failed, NeedsPassword, SessionState, Succeeded
from pdf_unlocker.utils.config import Config, verbosity_to_level
from pdf_unlocker.utils.exceptions import PDFUnlockerError
from pdf_unlocker.utils.logger import Logger

EXIT_OK = 0
EXIT_FAILED = 1
EXIT_CANCELLED = 2
EXIT_INTERRUPTED = 130


def positive_float(value: str) -> float:
    """argparse type accepting only numbers greater than zero"""
    try:
        number = float(value)
    except ValueError:
        raise argparse.ArgumentTypeError(f"invalid number: {value!r}")
    if number <= 0:
        raise argparse.ArgumentTypeError(f"must be greater than 0, got {value}")
    return number


def create_parser() -> argparse.ArgumentParser:
    """Create the command-line argument parser"""
    parser = argparse.ArgumentParser(
        description="Remove password protection from a PDF file",
        formatter_class=argparse.ArgumentDefaultsHelpFormatter,
    )

    parser.add_argument("pdf_file", help="Path to the PDF file to unlock")

    unlock_group = parser.add_argument_group("Unlock Options")
    unlock_group.add_argument(
        "-o", "--output", help="Where to write the unlocked PDF (default: <name>_unlocked.pdf)"
    )
    unlock_group.add_argument(
        "-p",
        "--password",
        help="Password to try first; you will be prompted if it is wrong or missing",
    )
    unlock_group.add_argument(
        "--info",
        action="store_true",
        help="Only report whether the file is encrypted, do not unlock it",
    )
    unlock_group.add_argument(
        "--max-size-mb", type=positive_float, help="Largest accepted file size in megabytes"
    )
    unlock_group.add_argument(
        "--render-scale", type=positive_float, help="Render scale used by the rasterize fallback"
    )

    output_group = parser.add_argument_group("Output Options")
    output_group.add_argument(
        "-v",
        "--verbosity",
        choices=["debug", "info", "warning", "error", "critical"],
        default=None,
        help="Logging verbosity level (default: from config, else info)",
    )
    output_group.add_argument("--log-file", help="Save log output to this file")
    output_group.add_argument(
        "-q", "--quiet", action="store_true", help="Suppress log output and the progress bar"
    )

    config_group = parser.add_argument_group("Configuration")
    config_group.add_argument("--config", help="Path to configuration file")
    config_group.add_argument(
        "--save-config",
        action="store_true",
        help="Save current settings as default configuration",
    )

    return parser


def apply_args_to_config(args, config: Config) -> None:
    """Command-line args override config values"""
    if args.max_size_mb is not None:
        config.set("max_file_size", int(args.max_size_mb * 1024 * 1024))
    if args.render_scale is not None:
        config.set("render_scale", args.render_scale)
    if args.verbosity:
        config.set("verbosity", args.verbosity)
    if args.log_file:
        config.set("log_file", args.log_file)


def setup_logger(args, config: Config) -> Logger:
    """Set up logging based on command-line arguments and config"""
    return Logger(
        name="pdf_unlocker",
        log_file=config.get("log_file"),
        level=verbosity_to_level(config.get("verbosity", "info")),
        console=not args.quiet,
    )


def print_system_info(logger) -> None:
    """Log system information useful for debugging"""
    import fitz
    import pikepdf

    logger.debug("=== System Information ===")
    logger.debug(f"Python version: {platform.python_version()}")
    logger.debug(f"Platform: {platform.platform()}")
    logger.debug(f"pikepdf version: {pikepdf.__version__}")
    logger.debug(f"PyMuPDF version: {fitz.VersionBind}")
    logger.debug("=========================")


class ProgressDisplay:
    """Shows Decrypting progress as a tqdm bar"""

    def __init__(self, disable: bool = False):
        self.disable = disable
        self.bar: Optional[tqdm] = None

    def __call__(self, state: SessionState) -> None:
        if isinstance(state, Decrypting):
            if self.bar is None:
                self.bar = tqdm(
                    total=100,
                    unit="%",
                    desc="Decrypting",
                    disable=self.disable,
                    bar_format="{desc}: {percentage:3.0f}%|{bar}|",
                )
            # A retry restarts lower than where the previous attempt ended
            self.bar.n = state.progress
            self.bar.set_description(describe_progress(state.progress))
            self.bar.refresh()
        else:
            self.close()

    def close(self) -> None:
        if self.bar is not None:
            self.bar.close()
            self.bar = None


def describe_progress(progress: float) -> str:
    if progress < 50:
        return "Decrypting"
    if progress < 90:
        return "Rebuilding PDF"
    return "Finalizing"


def prompt_password(state: NeedsPassword) -> str:
    """Ask the user for a password; raises EOFError when the user gives up"""
    if state.is_retry:
        prompt = "Incorrect password. Please try again: "
    else:
        prompt = "This PDF is password protected. Password: "
    return getpass.getpass(prompt)


def default_output_path(pdf_file: str, config: Config) -> str:
    output_dir = config.get("output_dir") or os.path.dirname(os.path.abspath(pdf_file))
    return os.path.join(output_dir, unlocked_filename(os.path.basename(pdf_file)))


def report_info(controller: ProcessingController, selected: SelectedFile) -> int:
    """Print the classification of a file"""
    controller.validate(selected)
    info = controller.detector.classify(selected.read())

    print(f"File: {selected.name}")
    print(f"Encrypted: {'yes' if info.is_encrypted else 'no'}")
    if info.is_encrypted:
        method = info.encryption_method.value if info.encryption_method else "unknown"
        print(f"Method: {method}")
        print(f"Password required: {'yes' if info.requires_password else 'no'}")
    if info.permissions is not None:
        perms = info.permissions
        for label, granted in (("printing", perms.printing), ("modifying", perms.modifying),
                               ("copying", perms.copying), ("annotating", perms.annotating)):
            print(f"  {label}: {'allowed' if granted else 'denied'}")
    return EXIT_OK


def run_session(controller: ProcessingController, selected: SelectedFile,
                password: Optional[str], logger) -> SessionState:
    """Drive the controller until the session reaches a terminal state or is cancelled"""
    state = controller.choose_file(selected)

    while isinstance(state, NeedsPassword):
        if password is not None:
            candidate, password = password, None
        else:
            try:
                candidate = prompt_password(state)
            except EOFError:
                logger.info("Password prompt cancelled")
                return controller.cancel()
        state = controller.submit_password(candidate)

    return state


def main() -> int:
    """Main entry point for the PDF unlocker CLI

    Returns:
        Exit code (0 for success, non-zero for error)
    """
    parser = create_parser()
    args = parser.parse_args()

    try:
        config = Config(args.config)
    except PDFUnlockerError as e:
        print(f"Error: {e}", file=sys.stderr)
        return EXIT_FAILED
    apply_args_to_config(args, config)

    logger = setup_logger(args, config).get_logger()
    display = ProgressDisplay(disable=args.quiet)

    try:
        print_system_info(logger)

        if args.save_config:
            config.save()
            logger.info(f"Configuration saved to {config.config_path}")

        controller = ProcessingController.from_config(config, on_state_change=display, logger=logger)

        try:
            selected = SelectedFile.from_path(args.pdf_file)
        except OSError as e:
            logger.error(f"Cannot open {args.pdf_file}: {e.strerror or e}")
            return EXIT_FAILED

        if args.info:
            return report_info(controller, selected)

        state = run_session(controller, selected, args.password, logger)

        if isinstance(state, Succeeded):
            output_path = args.output or default_output_path(args.pdf_file, config)
            with open(output_path, "wb") as f:
                f.write(state.output)
            logger.info("PDF unlocked successfully! Password protection has been removed.")
            logger.info(f"Saved to {output_path} ({len(state.output) / 1024:.0f} KB)")
            return EXIT_OK

        if isinstance(state, Failed):
            logger.error(f"Error: {state.message}")
            return EXIT_FAILED

        return EXIT_CANCELLED

    except PDFUnlockerError as e:
        logger.error(f"Error: {str(e)}")
        return EXIT_FAILED
    except KeyboardInterrupt:
        logger.info("\nProcess interrupted by user.")
        return EXIT_INTERRUPTED
    except Exception as e:
        logger.exception(f"Unexpected error: {str(e)}")
        return EXIT_FAILED
    finally:
        display.close()


def display_examples():
    """Display usage examples"""
    examples = [
        "Basic usage (prompts for the password if needed):",
        "  pdf-unlock document.pdf",
        "",
        "Choose where to write the unlocked file:",
        "  pdf-unlock document.pdf -o unlocked.pdf",
        "",
        "Try a known password first:",
        "  pdf-unlock document.pdf -p hunter2",
        "",
        "Only check whether a file is encrypted:",
        "  pdf-unlock document.pdf --info",
        "",
        "Save configuration for future use:",
        "  pdf-unlock document.pdf --max-size-mb 200 --save-config",
        "",
        "For more options:",
        "  pdf-unlock -h",
    ]

    print("\n".join(examples))


if __name__ == "__main__":
    if len(sys.argv) == 1:
        display_examples()
        sys.exit(1)

    sys.exit(main())
