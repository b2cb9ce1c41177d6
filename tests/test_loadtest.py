"""Tests for the Apache Bench wrapper."""

import subprocess
from unittest.mock import MagicMock, patch

import pytest

from forumops.loadtest import LoadTestError, build_ab_command, parse_ab_output, run_load_test

AB_OUTPUT = """\
This is ApacheBench, Version 2.3 <$Revision: 1903618 $>
Copyright 1996 Adam Twiss, Zeus Technology Ltd, http://www.zeustech.net/
Licensed to The Apache Software Foundation, http://www.apache.org/

Benchmarking localhost (be patient).....done


Server Software:
Server Hostname:        localhost
Server Port:            3000

Document Path:          /health
Document Length:        15 bytes

Concurrency Level:      10
Time taken for tests:   0.123 seconds
Complete requests:      100
Failed requests:        0
Non-2xx responses:      3
Total transferred:      21300 bytes
HTML transferred:       1500 bytes
Requests per second:    813.01 [#/sec] (mean)
Time per request:       12.300 [ms] (mean)
Time per request:       1.230 [ms] (mean, across all concurrent requests)
Transfer rate:          169.11 [Kbytes/sec] received

Connection Times (ms)
              min  mean[+/-sd] median   max
Connect:        0    0   0.1      0       1
Processing:     2   12   3.4     11      20
Waiting:        1   11   3.3     10      19
Total:          2   12   3.4     11      20

Percentage of the requests served within a certain time (ms)
  50%     11
  66%     13
  75%     14
  80%     15
  90%     17
  95%     18
  98%     19
  99%     20
 100%     20 (longest request)
"""


class TestParseAbOutput:
    """Tests for ab report parsing."""

    def test_parse_full_report(self):
        result = parse_ab_output(AB_OUTPUT, url="http://localhost:3000/health")
        assert result.url == "http://localhost:3000/health"
        assert result.concurrency == 10
        assert result.complete_requests == 100
        assert result.failed_requests == 0
        assert result.non_2xx_responses == 3
        assert result.requests_per_second == 813.01
        assert result.time_per_request_ms == 12.3
        assert result.total_seconds == 0.123
        assert result.transfer_rate_kbps == 169.11

    def test_percentile_table(self):
        result = parse_ab_output(AB_OUTPUT)
        assert result.percentiles[50] == 11
        assert result.percentiles[99] == 20
        assert result.percentiles[100] == 20
        assert len(result.percentiles) == 9

    def test_url_falls_back_to_document_path(self):
        assert parse_ab_output(AB_OUTPUT).url == "/health"

    def test_non_2xx_counts_as_errors(self):
        result = parse_ab_output(AB_OUTPUT)
        assert not result.success
        assert result.error_rate == pytest.approx(0.03)

    def test_clean_run_is_success(self):
        result = parse_ab_output(AB_OUTPUT.replace("Non-2xx responses:      3\n", ""))
        assert result.non_2xx_responses == 0
        assert result.success

    def test_to_dict(self):
        data = parse_ab_output(AB_OUTPUT).to_dict()
        assert data["requests_per_second"] == 813.01
        assert data["percentiles"]["p95"] == 18

    def test_unrecognized_output(self):
        with pytest.raises(LoadTestError, match="Unrecognized ab output"):
            parse_ab_output("ab: invalid URL\nUsage: ab [options] [http[s]://]hostname[:port]/")


class TestBuildAbCommand:
    """Tests for ab command-line construction."""

    def test_basic_command(self):
        assert build_ab_command("http://localhost:3000/health", 100, 10) == [
            "ab",
            "-n",
            "100",
            "-c",
            "10",
            "http://localhost:3000/health",
        ]

    def test_keepalive_and_timeout(self):
        cmd = build_ab_command("http://x/health", 10, 2, keepalive=True, timeout=5)
        assert cmd[5:] == ["-k", "-s", "5", "http://x/health"]

    def test_bare_host_gets_slash(self):
        assert build_ab_command("http://localhost:3000", 1, 1)[-1] == "http://localhost:3000/"

    def test_concurrency_above_requests_rejected(self):
        with pytest.raises(LoadTestError, match="cannot exceed"):
            build_ab_command("http://x/", 5, 10)

    def test_zero_requests_rejected(self):
        with pytest.raises(LoadTestError):
            build_ab_command("http://x/", 0, 1)


class TestRunLoadTest:
    """Tests for running ab."""

    def test_run_parses_stdout(self, mock_subprocess):
        mock_subprocess.return_value = MagicMock(returncode=0, stdout=AB_OUTPUT, stderr="")
        result = run_load_test("http://localhost:3000/health", requests=100, concurrency=10)
        assert result.complete_requests == 100
        cmd = mock_subprocess.call_args[0][0]
        assert cmd[:5] == ["ab", "-n", "100", "-c", "10"]

    def test_custom_binary(self, mock_subprocess):
        mock_subprocess.return_value = MagicMock(returncode=0, stdout=AB_OUTPUT, stderr="")
        run_load_test("http://x/health", 100, 10, binary="/usr/sbin/ab")
        assert mock_subprocess.call_args[0][0][0] == "/usr/sbin/ab"

    def test_missing_binary(self):
        with patch("subprocess.run", side_effect=FileNotFoundError):
            with pytest.raises(LoadTestError, match="ab not found on PATH"):
                run_load_test("http://x/health", 10, 1)

    def test_nonzero_exit(self, mock_subprocess):
        mock_subprocess.return_value = MagicMock(
            returncode=22, stdout="", stderr="apr_socket_recv: Connection refused (111)"
        )
        with pytest.raises(LoadTestError, match="exited with code 22: apr_socket_recv"):
            run_load_test("http://x/health", 10, 1)

    def test_timeout(self):
        with patch("subprocess.run", side_effect=subprocess.TimeoutExpired("ab", 60)):
            with pytest.raises(LoadTestError, match="did not finish"):
                run_load_test("http://x/health", 10, 1)
