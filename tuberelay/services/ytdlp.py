import asyncio
from typing import List, NamedTuple

from tuberelay.config.settings import config


class CompletedProcess(NamedTuple):
    """Subprocess result"""
    returncode: int
    stdout: bytes
    stderr: bytes


class SubprocessExecutor:
    """Execute subprocess with consistent error handling"""

    @staticmethod
    async def run(
        cmd: List[str],
        timeout: float,
        capture_stderr: bool = True
    ) -> CompletedProcess:
        """
        Run subprocess with timeout and proper cleanup.
        Prevents process leaks and ensures consistent error handling.
        """
        process = await asyncio.create_subprocess_exec(
            *cmd,
            stdout=asyncio.subprocess.PIPE,
            stderr=asyncio.subprocess.PIPE if capture_stderr else asyncio.subprocess.DEVNULL,
            stdin=asyncio.subprocess.DEVNULL
        )

        try:
            stdout, stderr = await asyncio.wait_for(
                process.communicate(),
                timeout=timeout
            )

            return CompletedProcess(
                returncode=process.returncode,
                stdout=stdout,
                stderr=stderr if capture_stderr else b""
            )

        except asyncio.TimeoutError:
            process.kill()
            await process.wait()
            raise
        except BaseException:
            if process.returncode is None:
                process.kill()
                await process.wait()
            raise

    @staticmethod
    async def spawn(cmd: List[str]) -> asyncio.subprocess.Process:
        """Start a long-running process whose stdout is consumed incrementally"""
        return await asyncio.create_subprocess_exec(
            *cmd,
            stdout=asyncio.subprocess.PIPE,
            stderr=asyncio.subprocess.PIPE,
            stdin=asyncio.subprocess.DEVNULL
        )


class YTDLPCommandBuilder:
    """Build yt-dlp commands"""

    @staticmethod
    def _base() -> List[str]:
        cmd = [
            config.ytdlp.binary,
            '--no-playlist',
            '--no-warnings',
            '--socket-timeout', str(config.ytdlp.socket_timeout),
        ]

        if config.ytdlp.js_runtime:
            cmd.extend(['--js-runtimes', config.ytdlp.js_runtime])

        return cmd

    @staticmethod
    def build_version_command() -> List[str]:
        return [config.ytdlp.binary, '--version']

    @staticmethod
    def build_info_command(url: str) -> List[str]:
        """Build command for fetching video info and the full format list"""
        cmd = YTDLPCommandBuilder._base()
        cmd.extend(['--dump-json', '--', url])
        return cmd

    @staticmethod
    def build_stream_command(url: str, format_id: str) -> List[str]:
        """Build command writing exactly one format to stdout, unmodified"""
        cmd = YTDLPCommandBuilder._base()
        cmd.extend([
            '-f', format_id,
            '-o', '-',
            # Progress and other output must stay off stdout, it carries the payload
            '--no-progress',
            '--quiet',
            '--no-part',
            '--',
            url,
        ])
        return cmd
