from __future__ import annotations

import argparse
import logging
import sys
import time
from collections.abc import Callable, Sequence
from pathlib import Path

from .config import Settings, TwilioConfig, get_settings, load_twilio_config
from .display import CYAN, GREEN, RED, YELLOW, Formatter, clear_line, colors_enabled
from .errors import BulkSmsError
from .outcome import SendOutcome
from .phone import NumberList, format_number, load_numbers
from .pipeline import MAX_MESSAGE_CHARS, send_all
from .twilio_client import TwilioClientSender, TwilioRestSender

logger = logging.getLogger(__name__)

EXIT_OK = 0
EXIT_ERROR = 1
EXIT_INTERRUPTED = 130

# The rate-limit pause is drawn as a countdown of this many dots.
PAUSE_STEPS = 11

InputFn = Callable[[str], str]
SenderFactory = Callable[
    [TwilioConfig, argparse.Namespace, Settings], TwilioRestSender | TwilioClientSender
]


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="bulk-sms",
        description="Send the same SMS to every number in a list via Twilio.",
    )
    parser.add_argument("--config", type=Path, help="Twilio key=value config file")
    parser.add_argument("--numbers", type=Path, help="file with one phone number per line")
    parser.add_argument("-m", "--message", type=str, help="message text (prompted if omitted)")
    parser.add_argument("-y", "--yes", action="store_true", help="do not ask for confirmation")
    parser.add_argument("--delay", type=float, help="pause between sends, in seconds")
    parser.add_argument("--timeout", type=float, help="HTTP timeout per request, in seconds")
    parser.add_argument(
        "--sdk",
        action="store_true",
        help="send through the twilio SDK instead of a raw POST (ignores BULK_SMS_API_BASE)",
    )
    parser.add_argument("--no-color", action="store_true", help="disable ANSI colors")
    parser.add_argument("-v", "--verbose", action="store_true", help="debug logging to stderr")
    return parser


def configure_logging(verbose: bool) -> None:
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
        stream=sys.stderr,
    )


def make_sender(
    config: TwilioConfig, args: argparse.Namespace, settings: Settings
) -> TwilioRestSender | TwilioClientSender:
    timeout = args.timeout if args.timeout is not None else settings.request_timeout
    if args.sdk:
        return TwilioClientSender(config, timeout=timeout)
    return TwilioRestSender(config, timeout=timeout, base_url=settings.api_base_url)


def report_numbers(fmt: Formatter, numbers: NumberList) -> None:
    for number in numbers.valid:
        print(fmt.ok(f"Valid number: {format_number(number)}"))
    for invalid in numbers.invalid:
        print(fmt.bad(f"Invalid number on line {invalid.line_number}: {invalid.raw}"))

    if numbers.invalid:
        print(fmt.paint(f"\nWarning: Found {len(numbers.invalid)} invalid numbers!", YELLOW))
        print("Numbers should include country code (e.g., +5511999999999)\n")


def prompt_message(fmt: Formatter, input_fn: InputFn) -> str | None:
    """
    Ask until we get a non-empty message that fits in one Twilio request.

    Returns None if input ends (EOF) before a usable message is entered.
    """
    print(fmt.heading("Message Configuration"))
    print(f"Enter the SMS message to send (max {MAX_MESSAGE_CHARS} characters):")
    while True:
        try:
            message = input_fn(fmt.paint("Message: ", YELLOW))
        except EOFError:
            print()
            return None
        problem = check_message(message)
        if problem is None:
            return message
        print(fmt.paint(f"{problem} Please enter a message:", RED))


def check_message(message: str) -> str | None:
    if not message.strip():
        return "Message cannot be empty."
    if len(message) > MAX_MESSAGE_CHARS:
        return f"Message is too long ({len(message)}/{MAX_MESSAGE_CHARS} characters)."
    return None


def confirm(
    fmt: Formatter, config: TwilioConfig, recipients: int, message: str, input_fn: InputFn
) -> bool:
    print(fmt.heading("Confirmation"))
    print("Ready to send messages:")
    print(f"- From: {fmt.paint(config.phone_number, YELLOW)}")
    print(f"- Recipients: {fmt.paint(str(recipients), YELLOW)}")
    print(f"- Message length: {fmt.paint(f'{len(message)}/{MAX_MESSAGE_CHARS}', YELLOW)} characters")
    print(f"- Message preview: {fmt.paint(message, YELLOW)}\n")
    try:
        answer = input_fn("Send messages? (y/n): ").strip()
    except EOFError:
        print()
        return False
    return answer[:1] in ("y", "Y")


def run(
    argv: Sequence[str] | None = None,
    *,
    input_fn: InputFn = input,
    sleep: Callable[[float], None] = time.sleep,
    sender_factory: SenderFactory = make_sender,
) -> int:
    """Run the whole interactive flow and return the process exit code."""
    args = build_parser().parse_args(argv)
    configure_logging(args.verbose)
    fmt = Formatter(colors_enabled(sys.stdout, disabled=args.no_color))

    print(fmt.banner())

    try:
        print(fmt.paint("Initializing SMS sender...", CYAN))
        settings = get_settings()
        config = load_twilio_config(args.config or settings.config_path)
        print(fmt.ok("Configuration loaded successfully"))

        numbers_path = args.numbers or settings.numbers_path
        print(fmt.paint(f"\nReading phone numbers from {numbers_path}...", CYAN))
        numbers = load_numbers(numbers_path)
        report_numbers(fmt, numbers)

        if not numbers.valid:
            print(fmt.paint(f"\nError: No valid phone numbers found in {numbers_path}", RED))
            print("Please check the file and try again.")
            return EXIT_ERROR

        if args.message is not None:
            problem = check_message(args.message)
            if problem is not None:
                print(fmt.paint(problem, RED))
                return EXIT_ERROR
            message: str | None = args.message
        else:
            message = prompt_message(fmt, input_fn)
        if message is None:
            print(fmt.paint("Operation cancelled by user.", YELLOW))
            return EXIT_OK
        if not args.yes and not confirm(fmt, config, len(numbers.valid), message, input_fn):
            print(fmt.paint("Operation cancelled by user.", YELLOW))
            return EXIT_OK

        delay = args.delay if args.delay is not None else settings.send_delay

        def on_attempt(index: int, total: int, recipient: str) -> None:
            print(fmt.progress_bar(index, total), end="\r", flush=True)

        def on_outcome(index: int, total: int, outcome: SendOutcome) -> None:
            print(clear_line() + fmt.outcome_line(index, total, outcome))

        def pause(seconds: float) -> None:
            for step in range(PAUSE_STEPS):
                print(f"\rWaiting for rate limit... {'.' * (PAUSE_STEPS - step)}", end="", flush=True)
                sleep(seconds / PAUSE_STEPS)
            print(clear_line(), end="", flush=True)

        print(fmt.heading("Sending Messages"))
        with sender_factory(config, args, settings) as sender:
            result = send_all(
                config,
                sender,
                numbers.valid,
                message,
                delay=delay,
                sleep=pause,
                on_attempt=on_attempt,
                on_outcome=on_outcome,
            )

        print(fmt.report(result.summary))
    except BulkSmsError as e:
        print(fmt.paint(f"\nError: {e}", RED), file=sys.stderr)
        return EXIT_ERROR
    except KeyboardInterrupt:
        print(fmt.paint("\nInterrupted.", YELLOW))
        return EXIT_INTERRUPTED
    except Exception as e:
        logger.exception("unhandled error")
        print(fmt.paint(f"\nError: {e}", RED), file=sys.stderr)
        return EXIT_ERROR

    print(fmt.paint("\nProgram finished successfully!", GREEN))
    return EXIT_OK


def main() -> None:
    sys.exit(run())


if __name__ == "__main__":
    main()
