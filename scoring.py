import re
from typing import List, Dict, Any

from probes import ProbeBundle

# ===============================================
# BLOCK 1. SCORING CONFIG (WEIGHTS & CAPS)
# ===============================================

class SCORING_CONFIG:
    """
    Evidence-combination model for the environment-integrity classifier.
    Each signal group has its own ceiling; the ceilings sum to MAX_SCORE,
    so the final clamp never bites on valid input.
    """
    GROUP_CAPS = {
        "user_agent": 25,
        "platform": 15,
        "screen": 20,
        "hardware": 15,
        "touch": 10,
        "webgl": 15,
    }

    # Verdict boundary is exact: 59 passes, 60 blocks
    EMULATOR_THRESHOLD = 60
    MAX_SCORE = 100

    NO_INDICATORS_REASON = "Не обнаружено явных признаков эмулятора"


# --- UA Token Physics ---
MOBILE_UA_RE = re.compile(r'android|iphone|ipad', re.IGNORECASE)
ANDROID_UA_RE = re.compile(r'android', re.IGNORECASE)
IOS_UA_RE = re.compile(r'iphone|ipad', re.IGNORECASE)

# Order is evaluation order (and therefore reason order)
USER_AGENT_KEYWORDS = (
    "sdk",           # Android SDK emulator
    "emulator",
    "generic",
    "x86",           # real Android hardware is ARM
    "vbox",
    "genymotion",
    "bluestacks",
    "nox",
    "ldplayer",
    "mumu",
    "memu",
    "android sdk",
    "simulator",     # iOS Simulator
)
STRONG_UA_KEYWORDS = {"emulator", "sdk", "simulator"}

W_UA_STRONG = 8
W_UA_X86_ANDROID = 10
W_UA_WEAK = 5
W_UA_X86_MOBILE = 7

W_PLATFORM_DESKTOP = 10
W_PLATFORM_X86 = 5
W_PLATFORM_IOS_FOREIGN = 10

# --- Screen Physics ---
# Stock resolutions of emulator images / device presets (portrait)
EMULATOR_RESOLUTIONS = (
    (1080, 1920),
    (720, 1280),
    (480, 800),
    (375, 667),
    (414, 896),
)
VALID_PIXEL_RATIOS = (1, 1.5, 2, 2.5, 2.75, 3, 3.5, 4)
PIXEL_RATIO_TOLERANCE = 0.1
MOBILE_MAX_PIXELS = 10000000  # 4K is ~8.3M

W_SCREEN_RESOLUTION = 8
W_SCREEN_DPR_ODD = 6
W_SCREEN_DPR_EXTREME = 6
W_SCREEN_OVERSIZE = 6

# --- Hardware Physics ---
VALID_MEMORY_GIB = (2, 3, 4, 6, 8, 12, 16)
MEMORY_TOLERANCE = 0.5

W_CPU_LOW = 4
W_CPU_HIGH = 5
W_MEMORY_ODD = 4
W_MEMORY_HUGE = 6

# --- Touch Physics ---
W_TOUCH_MISSING = 10
W_TOUCH_FEW_POINTS = 3
W_TOUCH_ON_DESKTOP = 2

# --- WebGL Physics ---
VIRTUALIZATION_GPU_KEYWORDS = (
    "virtualbox",
    "vmware",
    "qemu",
    "bochs",
    "parallels",
    "virtual",
    "llvmpipe",  # software rasterizer, common in VMs
    "mesa",
)
W_GPU_VIRTUAL = 8
W_GPU_GENERIC = 5
W_GPU_SHORT = 3

# ===============================================
# BLOCK 2. HELPERS
# ===============================================

def _fmt_num(x) -> str:
    """2.0 -> '2', 2.625 -> '2.625' (matches how the browser prints numbers)."""
    return f"{x:g}"


def _is_mobile_ua(ua: str) -> bool:
    return bool(MOBILE_UA_RE.search(ua))


def _close_group(key: str, raw_points: int, reasons: List[str]) -> Dict[str, Any]:
    cap = SCORING_CONFIG.GROUP_CAPS[key]
    return {
        "group": key,
        "cap": cap,
        "raw_points": raw_points,
        "points": min(raw_points, cap),
        "reasons": reasons,
    }

# ===============================================
# BLOCK 3. SIGNAL GROUPS
# ===============================================

def score_user_agent(probes: ProbeBundle) -> dict:
    """Keyword scan of the lower-cased UA, plus the x86-on-mobile co-occurrence check."""
    ua_raw = probes.user_agent
    ua = ua_raw.lower()
    is_android = bool(ANDROID_UA_RE.search(ua_raw))
    points = 0
    reasons = []

    for keyword in USER_AGENT_KEYWORDS:
        if keyword not in ua: continue
        if keyword in STRONG_UA_KEYWORDS:
            points += W_UA_STRONG
            reasons.append(f'UserAgent содержит "{keyword}"')
        elif keyword == "x86" and is_android:
            points += W_UA_X86_ANDROID
            reasons.append("Обнаружена архитектура x86 в Android UserAgent")
        else:
            points += W_UA_WEAK
            reasons.append(f'UserAgent содержит "{keyword}"')

    # Deliberately stacks with the table hit above
    if "x86" in ua and _is_mobile_ua(ua_raw):
        points += W_UA_X86_MOBILE
        reasons.append("Архитектура x86 обнаружена на мобильном устройстве")

    return _close_group("user_agent", points, reasons)


def score_platform(probes: ProbeBundle) -> dict:
    """navigator.platform vs. the OS claimed by the UA."""
    ua = probes.user_agent
    platform = probes.platform.lower()
    points = 0
    reasons = []

    if ANDROID_UA_RE.search(ua):
        if "win" in platform or "mac" in platform:
            points += W_PLATFORM_DESKTOP
            reasons.append("Несоответствие платформы: Android UA с десктопной платформой")
        if "x86" in platform or "x64" in platform:
            points += W_PLATFORM_X86
            reasons.append("Платформа содержит x86/x64 (подозрительно для Android)")

    if IOS_UA_RE.search(ua):
        if "linux" in platform or "win" in platform:
            points += W_PLATFORM_IOS_FOREIGN
            reasons.append("Несоответствие платформы: iOS UA с не-iOS платформой")

    return _close_group("platform", points, reasons)


def score_screen(probes: ProbeBundle) -> dict:
    w, h = probes.screen_width, probes.screen_height
    dpr = probes.device_pixel_ratio
    points = 0
    reasons = []

    # Either orientation
    if any((w, h) == (rw, rh) or (w, h) == (rh, rw) for rw, rh in EMULATOR_RESOLUTIONS):
        points += W_SCREEN_RESOLUTION
        reasons.append(f"Обнаружено типичное разрешение эмулятора: {w}x{h}")

    if _is_mobile_ua(probes.user_agent):
        has_valid_ratio = any(abs(dpr - r) < PIXEL_RATIO_TOLERANCE for r in VALID_PIXEL_RATIOS)
        if not has_valid_ratio and 0 < dpr < 5:
            points += W_SCREEN_DPR_ODD
            reasons.append(f"Необычное значение devicePixelRatio: {_fmt_num(dpr)}")

        if dpr < 0.5 or dpr > 5:
            points += W_SCREEN_DPR_EXTREME
            reasons.append(f"Крайне необычное значение devicePixelRatio: {_fmt_num(dpr)}")

        # Desktop-hosted emulators tend to report the host monitor
        if w * h > MOBILE_MAX_PIXELS:
            points += W_SCREEN_OVERSIZE
            reasons.append(f"Очень большое разрешение экрана для мобильного устройства: {w}x{h}")

    return _close_group("screen", points, reasons)


def score_hardware(probes: ProbeBundle) -> dict:
    cores = probes.hardware_concurrency
    memory = probes.device_memory_gib
    points = 0
    reasons = []

    # Emulators leak the host core count
    if _is_mobile_ua(probes.user_agent) and cores > 0:
        if cores in (1, 2):
            points += W_CPU_LOW
            reasons.append(f"Подозрительно малое количество ядер CPU: {cores}")
        elif cores >= 16:
            points += W_CPU_HIGH
            reasons.append(f"Подозрительно большое количество ядер CPU: {cores}")

    if memory > 0:
        has_valid_memory = any(abs(memory - m) < MEMORY_TOLERANCE for m in VALID_MEMORY_GIB)
        if not has_valid_memory and memory < 32:
            points += W_MEMORY_ODD
            reasons.append(f"Необычное значение памяти устройства: {_fmt_num(memory)} GB")
        if memory > 16:
            points += W_MEMORY_HUGE
            reasons.append(f"Очень большой объем памяти для мобильного устройства: {_fmt_num(memory)} GB")

    return _close_group("hardware", points, reasons)


def score_touch(probes: ProbeBundle) -> dict:
    points = 0
    reasons = []
    max_points = probes.max_touch_points

    if _is_mobile_ua(probes.user_agent):
        if not probes.touch_supported:
            points += W_TOUCH_MISSING
            reasons.append("Мобильное устройство без поддержки touch (подозрительно)")
        elif 0 < max_points < 5:
            # Real handsets report 5-10 simultaneous contacts
            points += W_TOUCH_FEW_POINTS
            reasons.append(f"Малое количество одновременных касаний: {max_points}")
    elif probes.touch_supported and max_points > 0:
        # Weak: touch laptops exist
        points += W_TOUCH_ON_DESKTOP
        reasons.append(f"Поддержка touch на десктопной платформе: {max_points}")

    return _close_group("touch", points, reasons)


def score_webgl(probes: ProbeBundle) -> dict:
    """
    Virtualized GPU fingerprint from the unmasked renderer/vendor strings.
    No renderer (WebGL blocked or no debug extension) is inconclusive, not suspicious.
    """
    points = 0
    reasons = []

    if probes.gpu_renderer is None:
        return _close_group("webgl", points, reasons)

    renderer = probes.gpu_renderer.lower()
    vendor = (probes.gpu_vendor or "").lower()

    for keyword in VIRTUALIZATION_GPU_KEYWORDS:
        if keyword in renderer or keyword in vendor:
            points += W_GPU_VIRTUAL
            reasons.append(f"WebGL рендерер указывает на виртуализацию: {keyword}")

    if "generic" in renderer or "software" in renderer:
        points += W_GPU_GENERIC
        reasons.append("Обнаружен generic/software WebGL рендерер")

    if len(renderer) < 10 or renderer == "unknown":
        points += W_GPU_SHORT
        reasons.append("Подозрительно короткое или неизвестное имя WebGL рендерера")

    return _close_group("webgl", points, reasons)


# Fixed order: ledger order and reason order follow this table
SIGNAL_GROUPS = (
    ("user_agent", score_user_agent),
    ("platform", score_platform),
    ("screen", score_screen),
    ("hardware", score_hardware),
    ("touch", score_touch),
    ("webgl", score_webgl),
)

# ===============================================
# BLOCK 4. AGGREGATION & VERDICT
# ===============================================

def classify(probes: ProbeBundle) -> dict:
    """
    EvidenceScorer. Folds the six independent signal groups into a verdict:
    {score, is_emulator, reasons, ledger}. Pure: same bundle, same verdict.
    """
    ledger = [fn(probes) for _, fn in SIGNAL_GROUPS]

    total = sum(item["points"] for item in ledger)
    score = min(int(round(total)), SCORING_CONFIG.MAX_SCORE)

    reasons = [r for item in ledger for r in item["reasons"]]
    if not reasons:
        reasons = [SCORING_CONFIG.NO_INDICATORS_REASON]

    return {
        "score": score,
        "is_emulator": score >= SCORING_CONFIG.EMULATOR_THRESHOLD,
        "reasons": reasons,
        "ledger": ledger,
    }


def verify_scoring_tables() -> list:
    """
    Startup self-test for the weight tables.
    Returns a list of problems (empty when consistent) and prints PASS/FAIL lines.
    """
    problems = []
    caps = SCORING_CONFIG.GROUP_CAPS

    for key, _ in SIGNAL_GROUPS:
        if key not in caps:
            problems.append(f"Signal group '{key}' has no cap")

    cap_total = sum(caps.values())
    if cap_total != SCORING_CONFIG.MAX_SCORE:
        problems.append(f"Group caps sum to {cap_total}, expected {SCORING_CONFIG.MAX_SCORE}")

    if not (0 < SCORING_CONFIG.EMULATOR_THRESHOLD <= SCORING_CONFIG.MAX_SCORE):
        problems.append(f"Threshold {SCORING_CONFIG.EMULATOR_THRESHOLD} outside (0, {SCORING_CONFIG.MAX_SCORE}]")

    if problems:
        for p in problems:
            print(f"CRITICAL FAIL: {p}")
    else:
        print(f"PASS: Scoring tables ({len(SIGNAL_GROUPS)} groups, caps total {cap_total})")
    return problems
