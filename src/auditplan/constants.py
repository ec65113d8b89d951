from __future__ import annotations

from typing import Any

DEFAULT_PASS_NAME = "defaultPass"
FULL_CONFIG_TOKEN = "auditplan:full"
TRACE_ARTIFACT = "traces"

THROTTLING = {
    "DEVTOOLS_RTT_ADJUSTMENT_FACTOR": 3.75,
    "DEVTOOLS_THROUGHPUT_ADJUSTMENT_FACTOR": 0.9,
}

# Typical mobile 3G link with a 4x CPU slowdown.
MOBILE_3G_THROTTLING: dict[str, Any] = {
    "rttMs": 150,
    "throughputKbps": 1.6 * 1024,
    "requestLatencyMs": 150 * THROTTLING["DEVTOOLS_RTT_ADJUSTMENT_FACTOR"],
    "downloadThroughputKbps": 1.6 * 1024 * THROTTLING["DEVTOOLS_THROUGHPUT_ADJUSTMENT_FACTOR"],
    "uploadThroughputKbps": 750 * THROTTLING["DEVTOOLS_THROUGHPUT_ADJUSTMENT_FACTOR"],
    "cpuSlowdownMultiplier": 4,
}

THROTTLING_METHODS = ("devtools", "simulate", "provided")
OBSERVED_THROTTLING_METHODS = ("devtools", "provided")

DEFAULT_SETTINGS: dict[str, Any] = {
    "output": "json",
    "maxWaitForLoad": 45 * 1000,
    "throttlingMethod": "devtools",
    "throttling": MOBILE_3G_THROTTLING,
    "auditMode": False,
    "gatherMode": False,
    "disableStorageReset": False,
    "disableDeviceEmulation": False,
    "blockedUrlPatterns": None,
    "additionalTraceCategories": None,
    "extraHeaders": None,
    "onlyAudits": None,
    "onlyCategories": None,
    "skipAudits": None,
}

DEFAULT_PASS_CONFIG: dict[str, Any] = {
    "passName": DEFAULT_PASS_NAME,
    "recordTrace": False,
    "useThrottling": False,
    "pauseAfterLoadMs": 0,
    "networkQuietThresholdMs": 0,
    "cpuQuietThresholdMs": 0,
    "blockedUrlPatterns": [],
    "blankPage": "about:blank",
    "blankDuration": 300,
    "gatherers": [],
}

# Observed throttling needs at least 5s of quiet for metrics to settle.
NON_SIMULATED_PASS_CONFIG_OVERRIDES: dict[str, int] = {
    "pauseAfterLoadMs": 5250,
    "networkQuietThresholdMs": 5250,
    "cpuQuietThresholdMs": 5250,
}
