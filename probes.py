import re
from typing import NamedTuple, Optional, Dict, Any, Callable

# ==========================================
# BLOCK 1. THE PROBE BUNDLE
# ==========================================

class ProbeBundle(NamedTuple):
    """
    Read-only snapshot of the runtime's exposed hardware/software surface.
    Every field defaults to its 'unknown' sentinel.
    """
    user_agent: str = ""
    platform: str = ""
    screen_width: int = 0
    screen_height: int = 0
    device_pixel_ratio: float = 1.0
    hardware_concurrency: int = 0
    device_memory_gib: float = 0.0
    touch_supported: bool = False
    max_touch_points: int = 0
    gpu_renderer: Optional[str] = None
    gpu_vendor: Optional[str] = None


# Recorded reports use the browser property names (see device fingerprint payloads)
RECORD_FIELD_MAP = {
    "userAgent": "user_agent",
    "platform": "platform",
    "screenWidth": "screen_width",
    "screenHeight": "screen_height",
    "devicePixelRatio": "device_pixel_ratio",
    "hardwareConcurrency": "hardware_concurrency",
    "deviceMemory": "device_memory_gib",
    "touchSupport": "touch_supported",
    "maxTouchPoints": "max_touch_points",
    "webglRenderer": "gpu_renderer",
    "webglVendor": "gpu_vendor",
}

# ==========================================
# BLOCK 2. FAULT-ISOLATED READERS
# ==========================================

def _read_probe(name: str, reader: Callable[[], Any], default):
    """
    Runs a single probe read. Any failure degrades this probe only.
    A JS `null` arrives as None and is also treated as unknown.
    """
    try:
        value = reader()
    except Exception as e:
        print(f"[Probe] {name} unavailable: {e}")
        return default
    if value is None:
        return default
    return value


def _as_count(value) -> int:
    n = int(value)
    return n if n >= 0 else 0


def _as_amount(value) -> Optional[float]:
    if value is None: return None
    x = float(value)
    return x if x >= 0 else 0.0


def _as_flag(value) -> bool:
    # Recorded reports may carry "false"/"0"; only real booleans are trusted
    if not isinstance(value, bool):
        raise TypeError(f"expected a boolean, got {value!r}")
    return value


def _as_ratio(value) -> float:
    x = float(value)
    # 0 / NaN / negative ratios mean the runtime did not report one
    return x if x > 0 else 1.0


def _as_text(value) -> Optional[str]:
    return None if value is None else str(value)


def _read_gpu_strings(document):
    """
    Returns (renderer, vendor) from WEBGL_debug_renderer_info.
    (None, None) when WebGL or the debug extension is unavailable.
    """
    def _context():
        canvas = document.createElement("canvas")
        return canvas.getContext("webgl") or canvas.getContext("experimental-webgl")

    gl = _read_probe("webgl.context", _context, None)
    if not gl:
        return None, None

    debug_info = _read_probe(
        "webgl.debug_renderer_info",
        lambda: gl.getExtension("WEBGL_debug_renderer_info"),
        None,
    )
    if not debug_info:
        return None, None

    renderer = _read_probe(
        "webgl.renderer",
        lambda: _as_text(gl.getParameter(debug_info.UNMASKED_RENDERER_WEBGL)),
        None,
    )
    vendor = _read_probe(
        "webgl.vendor",
        lambda: _as_text(gl.getParameter(debug_info.UNMASKED_VENDOR_WEBGL)),
        None,
    )
    return renderer, vendor

# ==========================================
# BLOCK 3. COLLECTION
# ==========================================

def collect_probes(window, document=None) -> ProbeBundle:
    """
    SignalCollector. Reads every probe fresh from the live runtime.
    Never raises: unreadable probes fall back to their sentinel.
    """
    if document is None:
        document = _read_probe("document", lambda: window.document, None)

    user_agent = _read_probe("navigator.userAgent", lambda: _as_text(window.navigator.userAgent), "")
    platform = _read_probe("navigator.platform", lambda: _as_text(window.navigator.platform), "")

    screen_width = _read_probe("screen.width", lambda: _as_count(window.screen.width), 0)
    screen_height = _read_probe("screen.height", lambda: _as_count(window.screen.height), 0)
    pixel_ratio = _read_probe("devicePixelRatio", lambda: _as_ratio(window.devicePixelRatio), 1.0)

    cores = _read_probe("navigator.hardwareConcurrency", lambda: _as_count(window.navigator.hardwareConcurrency), 0)
    # deviceMemory only exists in Chromium; absence is the unknown state, not a fault
    memory = _read_probe("navigator.deviceMemory", lambda: _as_amount(getattr(window.navigator, "deviceMemory", None)), 0.0)

    max_touch_points = _read_probe("navigator.maxTouchPoints", lambda: _as_count(window.navigator.maxTouchPoints), 0)
    # 'ontouchstart' in window: the handler slot exists (as null) only on touch runtimes
    has_touch_handler = _read_probe("window.ontouchstart", lambda: hasattr(window, "ontouchstart"), False)
    touch_supported = bool(has_touch_handler) or max_touch_points > 0

    if document is not None:
        gpu_renderer, gpu_vendor = _read_gpu_strings(document)
    else:
        gpu_renderer, gpu_vendor = None, None

    return ProbeBundle(
        user_agent=user_agent,
        platform=platform,
        screen_width=screen_width,
        screen_height=screen_height,
        device_pixel_ratio=pixel_ratio,
        hardware_concurrency=cores,
        device_memory_gib=memory,
        touch_supported=touch_supported,
        max_touch_points=max_touch_points,
        gpu_renderer=gpu_renderer,
        gpu_vendor=gpu_vendor,
    )


def bundle_from_record(record: Dict[str, Any]) -> ProbeBundle:
    """
    Builds a bundle from a recorded probe report (browser property names).
    Same fault isolation as the live collector: a bad field becomes unknown.
    """
    coercers = {
        "user_agent": _as_text,
        "platform": _as_text,
        "screen_width": _as_count,
        "screen_height": _as_count,
        "device_pixel_ratio": _as_ratio,
        "hardware_concurrency": _as_count,
        "device_memory_gib": _as_amount,
        "touch_supported": _as_flag,
        "max_touch_points": _as_count,
        "gpu_renderer": _as_text,
        "gpu_vendor": _as_text,
    }
    defaults = ProbeBundle()
    values = {}
    for record_key, field in RECORD_FIELD_MAP.items():
        if record_key not in record:
            continue
        raw = record[record_key]
        coerce = coercers[field]
        values[field] = _read_probe(record_key, lambda: coerce(raw) if raw is not None else None, getattr(defaults, field))

    bundle = defaults._replace(**values)
    if bundle.max_touch_points > 0 and not bundle.touch_supported:
        bundle = bundle._replace(touch_supported=True)
    return bundle

# ==========================================
# BLOCK 4. DEVICE PROFILE (DIAGNOSTIC ONLY)
# ==========================================

MOBILE_DEVICE_RE = re.compile(r'android|webos|iphone|ipad|ipod|blackberry|iemobile|opera mini', re.IGNORECASE)
TABLET_DEVICE_RE = re.compile(r'ipad|android(?!.*mobile)|tablet', re.IGNORECASE)

WINDOWS_NT_VERSIONS = {
    "10.0": "Windows 10/11",
    "6.3": "Windows 8.1",
    "6.2": "Windows 8",
    "6.1": "Windows 7",
}


def _detect_os(ua: str) -> str:
    if re.search(r'android', ua, re.IGNORECASE):
        m = re.search(r'Android\s([0-9.]*)', ua)
        return f"Android {m.group(1)}" if m else "Android"
    if re.search(r'iPad|iPhone|iPod', ua):
        m = re.search(r'OS (\d+)_(\d+)_?(\d+)?', ua)
        if not m: return "iOS"
        return f"iOS {m.group(1)}.{m.group(2)}" + (f".{m.group(3)}" if m.group(3) else "")
    if "Windows" in ua:
        m = re.search(r'Windows NT (\d+\.\d+)', ua)
        return WINDOWS_NT_VERSIONS.get(m.group(1), "Windows") if m else "Windows"
    if "Mac OS X" in ua:
        m = re.search(r'Mac OS X (\d+)[._](\d+)[._]?(\d+)?', ua)
        if not m: return "macOS"
        return f"macOS {m.group(1)}.{m.group(2)}" + (f".{m.group(3)}" if m.group(3) else "")
    if "Linux" in ua:
        return "Linux"
    return "Unknown"


def _detect_browser(ua: str) -> str:
    # Order matters: Chrome UAs also carry 'Safari', Edge UAs also carry 'Chrome'
    if re.search(r'firefox', ua, re.IGNORECASE):
        m = re.search(r'Firefox/(\d+)', ua)
        return f"Firefox {m.group(1)}" if m else "Firefox"
    if re.search(r'edge|edg/', ua, re.IGNORECASE):
        m = re.search(r'Edg(?:e)?/(\d+)', ua)
        return f"Edge {m.group(1)}" if m else "Edge"
    if re.search(r'chrome', ua, re.IGNORECASE):
        m = re.search(r'Chrome/(\d+)', ua)
        return f"Chrome {m.group(1)}" if m else "Chrome"
    if re.search(r'safari', ua, re.IGNORECASE):
        m = re.search(r'Version/(\d+)', ua)
        return f"Safari {m.group(1)}" if m else "Safari"
    return "Unknown"


def _detect_model(ua: str) -> str:
    if re.search(r'android', ua, re.IGNORECASE):
        m = re.search(r';\s([^;)]+)\sBuild', ua, re.IGNORECASE)
        return m.group(1).strip() if m else "Unknown"
    if "iPhone" in ua:
        m = re.search(r'iPhone(\d+,\d+)', ua)
        return f"iPhone {m.group(1).replace(',', '.')}" if m else "iPhone"
    if "iPad" in ua:
        return "iPad"
    return "Unknown"


def describe_device(bundle: ProbeBundle) -> dict:
    """Human-readable profile of the probed runtime. Not used for scoring."""
    ua = bundle.user_agent
    is_mobile = bool(MOBILE_DEVICE_RE.search(ua))
    is_tablet = bool(TABLET_DEVICE_RE.search(ua))

    if is_mobile: device_type = "mobile"
    elif is_tablet: device_type = "tablet"
    else: device_type = "desktop"

    return {
        "device_type": device_type,
        "os": _detect_os(ua),
        "browser": _detect_browser(ua),
        "device_model": _detect_model(ua),
        "screen_resolution": f"{bundle.screen_width}x{bundle.screen_height}",
        "platform": bundle.platform or "Unknown",
    }
