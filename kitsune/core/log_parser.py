"""
Log Parser Module - Timestamp and level extraction for tailed lines

Handles:
- Timestamp detection across the common log prefix families
- Conversion of every timestamp family to a comparable local datetime
- Log level identification (TRACE, DEBUG, INFO, WARNING, ERROR)
- Stripping the timestamp prefix from the displayed content
"""
import re
from datetime import datetime, timedelta, timezone
from typing import Optional, Dict, List, Tuple
from dataclasses import dataclass
from enum import Enum


class LogLevel(Enum):
    """Log severity levels"""
    TRACE = "TRACE"
    DEBUG = "DEBUG"
    INFO = "INFO"
    WARNING = "WARNING"
    ERROR = "ERROR"

    @property
    def color(self) -> str:
        """Get color representation for this log level"""
        colors = {
            LogLevel.TRACE: "dim",
            LogLevel.DEBUG: "blue",
            LogLevel.INFO: "white",
            LogLevel.WARNING: "yellow",
            LogLevel.ERROR: "red bold",
        }
        return colors[self]


@dataclass(frozen=True)
class LogRecord:
    """Parsed log line with its position in the stream"""
    sequence: int
    raw_text: str
    content: str
    timestamp: Optional[datetime] = None
    level: LogLevel = LogLevel.INFO

    def __str__(self) -> str:
        return self.raw_text

    @property
    def short_time(self) -> str:
        """Timestamp as HH:MM:SS.mmm, empty if the line has none"""
        if self.timestamp is None:
            return ""
        return f"{self.timestamp:%H:%M:%S}.{self.timestamp.microsecond // 1000:03d}"

    @property
    def display_text(self) -> str:
        """Line number, short timestamp and content as shown in a panel"""
        stamp = f"[{self.short_time}] " if self.timestamp is not None else ""
        return f"{self.sequence:>5} │ {stamp}{self.content}"


_MONTHS = {
    'jan': 1, 'feb': 2, 'mar': 3, 'apr': 4, 'may': 5, 'jun': 6,
    'jul': 7, 'aug': 8, 'sep': 9, 'oct': 10, 'nov': 11, 'dec': 12,
}

_LEVEL_TOKENS = {
    'TRACE': LogLevel.TRACE,
    'TRC': LogLevel.TRACE,
    'DEBUG': LogLevel.DEBUG,
    'DBG': LogLevel.DEBUG,
    'INFO': LogLevel.INFO,
    'INF': LogLevel.INFO,
    'INFORMATION': LogLevel.INFO,
    'WARN': LogLevel.WARNING,
    'WARNING': LogLevel.WARNING,
    'WRN': LogLevel.WARNING,
    'ERROR': LogLevel.ERROR,
    'ERR': LogLevel.ERROR,
    'FATAL': LogLevel.ERROR,
    'CRITICAL': LogLevel.ERROR,
}

# Characters separating a timestamp prefix from the message
_CONTENT_SEPARATORS = " :-|"

_TIME = r'(?P<hour>\d{2}):(?P<minute>\d{2}):(?P<second>\d{2})'
_DATE = r'(?P<year>\d{4})-(?P<month>\d{2})-(?P<day>\d{2})'


class LogParser:
    """
    Stateless log line parser

    Supported timestamp prefixes, tried in order:
    - ISO 8601: "2024-01-15T14:30:45.123Z" / "2024-01-15T14:30:45+02:00"
    - Standard: "2024-01-15 14:30:45.123" / "2024-01-15 14:30:45,123"
    - Bracketed: "[2024-01-15 14:30:45]"
    - Log4j: "15 Jan 2024 14:30:45,123"
    - Unix seconds: "1700000000"
    - Unix milliseconds: "1700000000123"

    The order matters: an earlier family wins when several could match.
    """

    PATTERNS = [
        re.compile(
            r'^' + _DATE + r'T' + _TIME +
            r'(?:\.(?P<fraction>\d+))?'
            r'(?P<tz>Z|[+-]\d{2}:\d{2})?'
        ),
        re.compile(
            r'^' + _DATE + r'\s+' + _TIME +
            r'(?:[.,](?P<fraction>\d+))?'
        ),
        re.compile(
            r'^\[' + _DATE + r'\s+' + _TIME +
            r'(?:[.,](?P<fraction>\d+))?\]'
        ),
        re.compile(
            r'^(?P<day>\d{2})\s+(?P<month_name>[A-Za-z]{3})\s+(?P<year>\d{4})\s+' + _TIME +
            r'(?:[.,](?P<fraction>\d+))?'
        ),
        re.compile(r'^(?P<epoch>\d{10})(?:\.\d+)?(?!\d)'),
        re.compile(r'^(?P<epoch_ms>\d{13})(?!\d)'),
    ]

    LEVEL_PATTERN = re.compile(
        r'\b(' + '|'.join(sorted(_LEVEL_TOKENS, key=len, reverse=True)) + r')\b',
        re.IGNORECASE
    )

    def parse_timestamp(self, line: str) -> Tuple[Optional[datetime], int]:
        """
        Find a timestamp prefix in a line

        Args:
            line: Raw log line

        Returns:
            (timestamp, end of the matched span), or (None, 0) if no
            pattern both matched and converted
        """
        for pattern in self.PATTERNS:
            match = pattern.match(line)
            if not match:
                continue

            timestamp = self._convert(match.groupdict())
            if timestamp is not None:
                return timestamp, match.end()

        return None, 0

    def _convert(self, groups: Dict[str, Optional[str]]) -> Optional[datetime]:
        """Turn the named groups of a match into a naive local datetime"""
        try:
            if groups.get('epoch'):
                return datetime.fromtimestamp(int(groups['epoch']))

            if groups.get('epoch_ms'):
                millis = int(groups['epoch_ms'])
                return datetime.fromtimestamp(millis // 1000) + timedelta(milliseconds=millis % 1000)

            if groups.get('month_name'):
                month = _MONTHS.get(groups['month_name'].lower())
                if month is None:
                    return None
            else:
                month = int(groups['month'])

            fraction = groups.get('fraction') or ''
            microsecond = int((fraction + '000000')[:6])

            value = datetime(
                int(groups['year']), month, int(groups['day']),
                int(groups['hour']), int(groups['minute']), int(groups['second']),
                microsecond
            )

            tz = groups.get('tz')
            if tz:
                if tz == 'Z':
                    offset = timezone.utc
                else:
                    sign = -1 if tz[0] == '-' else 1
                    delta = timedelta(hours=int(tz[1:3]), minutes=int(tz[4:6]))
                    offset = timezone(sign * delta)
                value = value.replace(tzinfo=offset).astimezone().replace(tzinfo=None)

            return value
        except (ValueError, OverflowError, OSError):
            return None

    def parse_level(self, line: str) -> LogLevel:
        """Return the level of the first level token in the line, INFO if none"""
        match = self.LEVEL_PATTERN.search(line)
        if not match:
            return LogLevel.INFO
        return _LEVEL_TOKENS[match.group(1).upper()]

    def parse_line(self, line: str, sequence: int) -> LogRecord:
        """
        Parse a single log line

        Args:
            line: The log line to parse
            sequence: Sequence number assigned by the owning buffer

        Returns:
            LogRecord with parsed information
        """
        timestamp, end = self.parse_timestamp(line)
        content = line[end:].lstrip(_CONTENT_SEPARATORS) if timestamp is not None else line

        return LogRecord(
            sequence=sequence,
            raw_text=line,
            content=content,
            timestamp=timestamp,
            level=self.parse_level(line),
        )

    def parse_lines(self, lines: List[str], start_sequence: int = 1) -> List[LogRecord]:
        """
        Parse multiple log lines

        Args:
            lines: List of log lines
            start_sequence: Sequence number of the first line

        Returns:
            List of LogRecord objects
        """
        return [self.parse_line(line, i) for i, line in enumerate(lines, start=start_sequence)]


_default_parser = LogParser()


def parse_line(line: str, sequence: int) -> LogRecord:
    """Parse a line with the shared stateless parser"""
    return _default_parser.parse_line(line, sequence)
