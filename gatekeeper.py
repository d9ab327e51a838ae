from typing import Optional, Callable

from probes import collect_probes, describe_device
from scoring import classify

# ==========================================
# BLOCK 1. GATE CONFIG
# ==========================================

# --- DEBUG FLAGS ---
# Dumps score/reasons to the console. Never rendered to the user.
INTEGRITY_DEBUG_VERDICT = False

OVERLAY_ID = "emulator-block-overlay"

EMULATOR_BLOCK_HTML = f"""
<div id="{OVERLAY_ID}" style="
  position: fixed; top: 0; left: 0; width: 100%; height: 100%;
  background: rgba(0, 0, 0, 0.95); z-index: 99999;
  display: flex; align-items: center; justify-content: center;
  font-family: 'Inter', -apple-system, BlinkMacSystemFont, 'Segoe UI', sans-serif;
  color: #ffffff;">
  <div style="
    background: #0a0a0a; border: 1px solid rgba(255, 255, 255, 0.1);
    border-radius: 12px; padding: 40px; max-width: 500px; text-align: center;
    box-shadow: 0 0 30px rgba(255, 255, 255, 0.1);">
    <div style="font-size: 24px; font-weight: 600; margin-bottom: 20px; color: #ffffff;">
      Похоже, сайт открыт через эмулятор.
    </div>
    <div style="font-size: 16px; line-height: 1.6; color: #a0a0a0; margin-bottom: 10px;">
      Пожалуйста, откройте сайт на вашем реальном устройстве или на компьютере, используя ваш личный браузер.
    </div>
    <div style="font-size: 16px; line-height: 1.6; color: #a0a0a0;">
      Для продолжения работы закройте эмулятор и перезайдите на сайт.
    </div>
  </div>
</div>
"""

# ==========================================
# BLOCK 2. INPUT SUPPRESSION HANDLERS
# ==========================================

def _swallow_keydown(event):
    event.preventDefault()
    event.stopPropagation()
    return False


def _swallow_context_menu(event):
    event.preventDefault()
    return False

# ==========================================
# BLOCK 3. THE GATE
# ==========================================

class IntegrityGate:
    """
    Startup consumer of the environment-integrity verdict.

    Evaluates at most once per instance, then either bootstraps the
    application or replaces the mount point with a non-dismissable block.
    `proxy_factory` wraps Python callables for the JS event loop
    (pyodide.ffi.create_proxy in the browser).
    """
    def __init__(self, window, document, proxy_factory: Callable, root_id: str = "root",
                 collector: Callable = collect_probes, classifier: Callable = classify):
        self.window = window
        self.document = document
        self.proxy_factory = proxy_factory
        self.root_id = root_id
        self.collector = collector
        self.classifier = classifier

        self.verdict: Optional[dict] = None
        self.blocked = False
        self.bootstrapped = False
        # Keep proxies referenced for the lifetime of the page
        self._listeners = []

    def evaluate(self) -> dict:
        """Collects probes and classifies them once. Later calls reuse the verdict."""
        if self.verdict is not None:
            return self.verdict

        probes = self.collector(self.window, self.document)
        self.verdict = self.classifier(probes)

        if INTEGRITY_DEBUG_VERDICT:
            profile = describe_device(probes)
            print(f"[IntegrityGate] Device: {profile['device_type']} / {profile['os']} / {profile['browser']}")
            print(f"[IntegrityGate] Score: {self.verdict['score']} (emulator={self.verdict['is_emulator']})")
            for reason in self.verdict["reasons"]:
                print(f"[IntegrityGate]   - {reason}")
        return self.verdict

    def run(self, bootstrap: Callable[[], None]) -> bool:
        """
        Gate entry point. Returns True when access is blocked.
        `bootstrap` is only ever called once, and never after a block.
        """
        verdict = self.evaluate()
        if verdict["is_emulator"]:
            self.block(verdict)
            return True

        if not self.bootstrapped:
            self.bootstrapped = True
            bootstrap()
        return False

    def block(self, verdict: dict) -> None:
        """
        Renders the blocking surface over the mount point and suppresses
        keyboard and context-menu input in capture phase.
        The verdict details stay out of the rendered surface.
        """
        if self.blocked:
            return
        self.blocked = True

        document = self.document
        root = document.getElementById(self.root_id)
        if root is None:
            print(f"[IntegrityGate] Mount point #{self.root_id} missing; blocking document body.")
            root = document.body
        # The shell ships hidden until the gate opens; the block must be visible
        root.removeAttribute("hidden")
        root.innerHTML = EMULATOR_BLOCK_HTML

        document.body.style.overflow = "hidden"
        document.body.style.pointerEvents = "none"
        overlay = document.getElementById(OVERLAY_ID)
        if overlay is not None:
            overlay.style.pointerEvents = "auto"

        # useCapture=True: runs before any handler the page registered
        for event_name, handler in (("keydown", _swallow_keydown), ("contextmenu", _swallow_context_menu)):
            proxy = self.proxy_factory(handler)
            document.addEventListener(event_name, proxy, True)
            self._listeners.append((event_name, proxy))

        print("[IntegrityGate] Access blocked.")
