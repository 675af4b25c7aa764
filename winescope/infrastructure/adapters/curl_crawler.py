"""
curl-impersonate crawler adapter.

Fetches raw HTML through a TLS-fingerprint-impersonating curl build
(``curl_chrome116``, ``curl_firefox109``, ...). The process is spawned
from an argument list, never through a shell. A shell-escaped rendering
of the same command is produced for logging and for string-based runners.
"""
import asyncio
import logging
import math
from typing import List, Optional, Tuple

from winescope.domain.errors import FetchTimeoutError, NetworkError
from winescope.domain.ports import CrawlOptions

logger = logging.getLogger(__name__)

MAX_BUFFER_BYTES = 10 * 1024 * 1024  # 10MB
CURL_TIMEOUT_EXIT_CODE = 28
READ_CHUNK_BYTES = 64 * 1024

# Backslash must come first so later escapes are not escaped twice.
SHELL_METACHARACTERS = (
    "\\", '"', "$", "`", ";", "&", "|", ">", "<",
    "'", " ", "\t", "(", ")", "*", "?", "[", "#", "~",
)
# Characters still special inside double quotes.
DOUBLE_QUOTED_METACHARACTERS = ("\\", '"', "$", "`")


def escape_shell_arg(arg: str) -> str:
    """
    Escape a value for use as a bare (unquoted) shell word.

    Handles backslash, double quote, dollar, backtick, semicolon,
    ampersand, pipe and both redirects, plus quotes, blanks, parentheses
    and glob characters. A newline cannot be backslash-escaped, so it is
    wrapped in double quotes instead.
    """
    for char in SHELL_METACHARACTERS:
        arg = arg.replace(char, "\\" + char)
    return arg.replace("\n", '"\n"')


def escape_double_quoted(arg: str) -> str:
    """Escape a value for use between double quotes."""
    for char in DOUBLE_QUOTED_METACHARACTERS:
        arg = arg.replace(char, "\\" + char)
    return arg


def curl_binary(options: CrawlOptions, prefix: str = "curl_") -> str:
    return f"{prefix}{options.browser_profile.value}"


def max_time_seconds(timeout_ms: int) -> int:
    return math.ceil(timeout_ms / 1000)


def build_curl_args(url: str, options: CrawlOptions, prefix: str = "curl_") -> List[str]:
    """
    Build the argument vector for curl-impersonate.

    Values are passed verbatim; no shell ever sees them.
    """
    args = [
        curl_binary(options, prefix),
        "-s",
        "-L",
        url,
        "--max-time",
        str(max_time_seconds(options.timeout_ms)),
    ]
    for key, value in options.headers.items():
        args.extend(["-H", f"{key}: {value}"])
    if options.user_agent:
        args.extend(["-A", options.user_agent])
    return args


def build_shell_command(url: str, options: CrawlOptions, prefix: str = "curl_") -> str:
    """
    Render the fetch as a single shell command line.

    The URL is a bare word escaped with escape_shell_arg; header and
    user-agent values are double-quoted and escaped with
    escape_double_quoted. A shell running the line passes every value
    through unchanged.
    """
    command = f"{curl_binary(options, prefix)} -s -L {escape_shell_arg(url)}"
    command += f" --max-time {max_time_seconds(options.timeout_ms)}"

    for key, value in options.headers.items():
        command += f' -H "{escape_double_quoted(key)}: {escape_double_quoted(value)}"'

    if options.user_agent:
        command += f' -A "{escape_double_quoted(options.user_agent)}"'

    return command


class CurlCrawlerAdapter:
    """
    CrawlerPort implementation backed by curl-impersonate.

    Never retries; retry policy belongs to the caller.
    """

    def __init__(
        self,
        default_options: Optional[CrawlOptions] = None,
        binary_prefix: str = "curl_",
        max_buffer_bytes: int = MAX_BUFFER_BYTES,
    ):
        """
        Initialize the adapter.

        Args:
            default_options: Used when fetch() is called without options
            binary_prefix: Prefix of the curl-impersonate binaries
            max_buffer_bytes: Largest accepted response body
        """
        self.default_options = default_options or CrawlOptions()
        self.binary_prefix = binary_prefix
        self.max_buffer_bytes = max_buffer_bytes

    async def fetch(self, url: str, options: Optional[CrawlOptions] = None) -> str:
        """
        Fetch the raw response body of a URL.

        Args:
            url: The URL to fetch
            options: Browser profile, timeout, headers and user agent

        Returns:
            Response body as text

        Raises:
            FetchTimeoutError: If the deadline expires
            NetworkError: On any other failure, including an empty body
        """
        options = options or self.default_options
        timeout_ms = options.timeout_ms

        logger.debug(
            f"Fetching URL: {url} with browser: {options.browser_profile.value}, "
            f"timeout: {timeout_ms}ms"
        )
        logger.debug(f"Command: {build_shell_command(url, options, self.binary_prefix)}")

        args = build_curl_args(url, options, self.binary_prefix)

        try:
            process = await asyncio.create_subprocess_exec(
                *args,
                stdin=asyncio.subprocess.DEVNULL,
                stdout=asyncio.subprocess.PIPE,
                stderr=asyncio.subprocess.PIPE,
            )
        except OSError as e:
            raise NetworkError(f"Failed to fetch URL {url}: {e}", url) from e

        try:
            stdout, stderr = await asyncio.wait_for(
                self._collect(process, url), timeout=timeout_ms / 1000
            )
        except asyncio.TimeoutError:
            await self._kill(process)
            raise FetchTimeoutError(
                f"Request to {url} timed out after {timeout_ms}ms", url, timeout_ms
            ) from None
        except NetworkError:
            await self._kill(process)
            raise

        error_text = stderr.decode("utf-8", errors="replace").strip()

        if process.returncode != 0:
            if (
                process.returncode == CURL_TIMEOUT_EXIT_CODE
                or "timed out" in error_text.lower()
                or "timeout" in error_text.lower()
            ):
                raise FetchTimeoutError(
                    f"Request to {url} timed out after {timeout_ms}ms", url, timeout_ms
                )
            detail = error_text or f"exit code {process.returncode}"
            raise NetworkError(f"Failed to fetch URL {url}: {detail}", url)

        if error_text:
            logger.warning(f"curl-impersonate stderr: {error_text}")

        body = stdout.decode("utf-8", errors="replace")
        if not body.strip():
            raise NetworkError(f"Empty response from URL: {url}", url)

        logger.debug(f"Successfully fetched {len(body)} chars from {url}")
        return body

    async def _collect(self, process: asyncio.subprocess.Process, url: str) -> Tuple[bytes, bytes]:
        """Drain stdout and stderr, then wait for exit."""
        stdout, stderr = await asyncio.gather(
            self._read_capped(process.stdout, url),
            self._read_capped(process.stderr, url),
        )
        await process.wait()
        return stdout, stderr

    async def _read_capped(self, stream: asyncio.StreamReader, url: str) -> bytes:
        """Read a stream to EOF, failing as soon as it passes max_buffer_bytes."""
        chunks: List[bytes] = []
        size = 0
        while True:
            chunk = await stream.read(READ_CHUNK_BYTES)
            if not chunk:
                return b"".join(chunks)
            size += len(chunk)
            if size > self.max_buffer_bytes:
                raise NetworkError(
                    f"Failed to fetch URL {url}: maxBuffer exceeded "
                    f"(more than {self.max_buffer_bytes} bytes)",
                    url,
                )
            chunks.append(chunk)

    @staticmethod
    async def _kill(process: asyncio.subprocess.Process) -> None:
        try:
            process.kill()
        except ProcessLookupError:
            return
        await process.wait()
