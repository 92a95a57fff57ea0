from __future__ import annotations

import hashlib
import logging
import unittest
from pathlib import Path
from tempfile import TemporaryDirectory
from unittest.mock import patch

from mirrorkit.errors import ResourceNotFoundError, TransportError
from mirrorkit.util.hashing import sha256sum
from mirrorkit.util.logging import configure_logging
from mirrorkit.util.retry import retry


class HashingTests(unittest.TestCase):
    def test_sha256sum(self) -> None:
        with TemporaryDirectory() as tmpdir:
            path = Path(tmpdir) / "file.txt"
            path.write_text("hello world", encoding="utf-8")
            self.assertEqual(
                sha256sum(path, chunk_size=3),
                hashlib.sha256(b"hello world").hexdigest(),
            )


class LoggingTests(unittest.TestCase):
    def setUp(self) -> None:
        self.tearDown()

    def tearDown(self) -> None:
        logger = logging.getLogger("mirrorkit")
        for handler in list(logger.handlers):
            logger.removeHandler(handler)
            handler.close()

    def test_configure_logging_creates_handlers_once(self) -> None:
        with TemporaryDirectory() as tmpdir:
            log_path = Path(tmpdir) / "logs" / "mirrorkit.log"
            logger = configure_logging(log_path=log_path)
            configure_logging(log_path=log_path)
            logging.getLogger("mirrorkit.io.fetcher").info("hello")

            self.assertEqual(len(logger.handlers), 2)
            for handler in logger.handlers:
                handler.flush()
            self.assertIn("INFO mirrorkit.io.fetcher - hello", log_path.read_text(encoding="utf-8"))


class RetryTests(unittest.TestCase):
    def test_retry_eventual_success(self) -> None:
        attempts: dict[str, int] = {"count": 0}

        def op() -> str:
            attempts["count"] += 1
            if attempts["count"] < 3:
                raise TransportError("not yet", url="http://example.com/a")
            return "ok"

        with patch("mirrorkit.util.retry.time.sleep") as sleeper:
            result = retry(op, attempts=3, backoff_seconds=0.5, retry_on=(TransportError,))

        self.assertEqual(result, "ok")
        self.assertEqual(attempts["count"], 3)
        self.assertEqual([call.args[0] for call in sleeper.call_args_list], [0.5, 1.0])

    def test_retry_raises_last_error(self) -> None:
        def op() -> str:
            raise TransportError("down", url="http://example.com/a")

        with patch("mirrorkit.util.retry.time.sleep"):
            with self.assertRaises(TransportError):
                retry(op, attempts=2, backoff_seconds=0, retry_on=(TransportError,))

    def test_unlisted_and_give_up_errors_are_not_retried(self) -> None:
        calls: list[int] = []

        def missing() -> str:
            calls.append(1)
            raise ResourceNotFoundError("404", url="http://example.com/a")

        def broken() -> str:
            calls.append(1)
            raise KeyError("bug")

        with patch("mirrorkit.util.retry.time.sleep") as sleeper:
            with self.assertRaises(ResourceNotFoundError):
                retry(missing, attempts=3, backoff_seconds=1, retry_on=(TransportError,), give_up_on=(ResourceNotFoundError,))
            with self.assertRaises(KeyError):
                retry(broken, attempts=3, backoff_seconds=1, retry_on=(TransportError,))

        self.assertEqual(len(calls), 2)
        sleeper.assert_not_called()

    def test_rejects_zero_attempts(self) -> None:
        with self.assertRaises(ValueError):
            retry(lambda: None, attempts=0, backoff_seconds=0)


if __name__ == "__main__":
    unittest.main()
