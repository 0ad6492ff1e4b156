from datetime import datetime

from riolog.log_entry import LogEntry, LogLevel


def contains_list(full_list, sub_list) -> bool:
    sub_len = len(sub_list)
    for offset in range(len(full_list) - len(sub_list) + 1):
        if full_list[offset:offset + sub_len] == sub_list:
            return True
    return False


def make_entry(
        timestamp: str,
        message: str = "",
        level: LogLevel = LogLevel.INFO,
        source_index: int = 0,
        category: str = "test",
) -> LogEntry:
    """
    Build a LogEntry as the parser would, from a "YYYY-MM-DD HH:MM:SS.SSS" timestamp.
    """
    header = f"-{level.token}:<1> {timestamp} UTC [{category}]: "
    return LogEntry(
        timestamp=datetime.strptime(timestamp, "%Y-%m-%d %H:%M:%S.%f"),
        level=level,
        message=message,
        source_index=source_index,
        raw_line=header + message,
        pid=1,
        category=category,
        header=header,
    )


if __name__ == '__main__':
    assert(contains_list([1,2,3,4], [3,4]))
    assert(contains_list([1,2,3,4], [1,2,3,4]))
    assert(contains_list([1,2,3,4], [1,]))
    assert(contains_list([1,2,3,4], []))

    assert(not contains_list([1,2,3,4], [1,2,3,4,5]))
    assert(not contains_list([1,2,3,4], [2,2,3,4]))
