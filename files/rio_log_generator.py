import argparse
from datetime import datetime, timedelta
from pathlib import Path
import random

from riolog.escapes import encode_escapes

# Defaults (can be overridden via CLI)
DEFAULT_TARGET_SIZE_MEGABYTES = 50
DEFAULT_FILE_NAME = "rio16.log"
DEFAULT_OUTPUT_DIR = "."

# Log messages pool
LOG_MESSAGES = [
    ("info", "net.io", "Request processed successfully"),
    ("info", "auth", "User authentication succeeded"),
    ("debug", "sync", "Starting data synchronization"),
    ("info", "net.io", "Processing incoming request"),
    ("debug", "db", "Performing database backup"),
    ("warning", "api", 'Invalid input received: missing required field "name"'),
    ("critical", "net.io", "Failed to connect to remote server"),
    ("info", "mail", "Sending email notification"),
    ("warning", "net.io", "Slow response time detected"),
    ("info", "sync", "Data synchronization completed"),
    ("debug", "sched", "Executing scheduled task"),
    ("info", "net.io", "Request received from IP: 192.168.0.1"),
    ("warning", "disk", "Insufficient disk space available"),
    ("critical", "db", "Database connection failed"),
    ("info", "cache", "Cache cleared successfully"),
    ("debug", "mem", "Memory usage within normal range"),
    ("warning", "cpu", "High CPU usage detected"),
    ("critical", "net.io", "Timeout waiting for response"),
    ("info", "config", "Configuration updated"),
    ("debug", "auth", "Validating user permissions"),
    ("warning", "api", "Deprecated API endpoint accessed"),
    ("critical", "fs", "File not found: C:\\data\\input.csv"),
    ("info", "auth", "Session established"),
    ("debug", "mem", "Garbage collection completed"),
    ("warning", "net.io", "Retry attempt exceeded"),
    ("critical", "auth", "Authentication token expired"),
    ("info", "export", "Data export completed"),
    ("debug", "config", "Loading configuration file"),
    ("warning", "db", "Connection pool exhausted"),
    ("fatal", "core", "Unrecoverable error:\n\tstate=corrupt\n\taction=abort"),
]

FIXED_FIELD_LENGTH = len("-critical:<12345> 2025-01-01 00:00:00.000 UTC [net.io]: \n\n")


def generate_log_entry(timestamp: datetime, pid: int) -> str:
    """Generate a single RIO log entry (with its trailing blank line) for the given timestamp."""
    level, category, message = random.choice(LOG_MESSAGES)
    ts = timestamp.strftime("%Y-%m-%d %H:%M:%S.%f")[:23]
    return f"-{level}:<{pid}> {ts} UTC [{category}]: {encode_escapes(message)}\n\n"


def calculate_entries_needed(target_size_bytes: int) -> int:
    """Calculate approximate number of entries needed for target size in bytes."""
    avg_message_length = int(
        sum(len(encode_escapes(msg)) for *_, msg in LOG_MESSAGES) / len(LOG_MESSAGES)
    )
    return target_size_bytes // (FIXED_FIELD_LENGTH + avg_message_length)


def generate_log_file(filename, start_time, num_entries):
    """
    Generate a RIO log file with specified number of entries.

    Args:
        filename: Output file name
        start_time: Starting datetime
        num_entries: Number of log entries to generate
    """
    current_time = start_time
    pid = random.randint(1000, 65535)

    print(f"Generating {filename}...")
    with open(filename, 'w', encoding="utf-8") as f:
        for i in range(1, num_entries + 1):
            # Advance time by random interval (0-10 seconds, millisecond resolution)
            current_time += timedelta(milliseconds=random.randint(0, 10_000))

            f.write(generate_log_entry(current_time, pid))

            # Progress indicator
            if i % 100000 == 0:
                print(f"  Written {i:,} entries ({i / num_entries * 100:.1f}%)")

    print(f"  Completed: {num_entries:,} entries")


def parse_args() -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        description="Generate a synthetic RIO log file of approximately the specified size."
    )
    parser.add_argument(
        "--size-mb",
        type=int,
        default=DEFAULT_TARGET_SIZE_MEGABYTES,
        help=f"Approximate size of the generated file in megabytes (default: {DEFAULT_TARGET_SIZE_MEGABYTES}).",
    )
    parser.add_argument(
        "--file-name",
        type=str,
        default=DEFAULT_FILE_NAME,
        help=f"Name of the output log file (default: {DEFAULT_FILE_NAME}).",
    )
    parser.add_argument(
        "--output-dir",
        type=str,
        default=DEFAULT_OUTPUT_DIR,
        help="Directory where the file will be written (default: current directory).",
    )
    return parser.parse_args()


def main():
    args = parse_args()

    if args.size_mb <= 0:
        raise SystemExit("--size-mb must be a positive integer")

    output_dir = Path(args.output_dir)
    output_dir.mkdir(parents=True, exist_ok=True)

    output_path = output_dir / args.file_name

    target_size_bytes = args.size_mb * 1024 * 1024

    start_time = datetime(2025, 1, 1, 0, 0, 0)
    num_entries = calculate_entries_needed(target_size_bytes)

    print(f"Target: ~{args.size_mb}MB per file (~{num_entries:,} entries)")
    print()

    generate_log_file(
        str(output_path),
        start_time,
        num_entries,
    )

    print()
    print("Generation complete!")


if __name__ == "__main__":
    main()
