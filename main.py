from pyscript import document, window
from pyodide.ffi import create_proxy

from gatekeeper import IntegrityGate
from scoring import verify_scoring_tables

# ===============================================
# BOOTLOADER: INTEGRITY GATE
# ===============================================
# Runs before the application shell is revealed. The host application
# mounts on the `integrity-gate:open` event and never on its own.

GATE = IntegrityGate(window, document, create_proxy)


def open_app():
    """Un-gates the application shell."""
    root = document.getElementById("root")
    if root:
        root.removeAttribute("hidden")
    document.dispatchEvent(window.CustomEvent.new("integrity-gate:open"))
    print("[IntegrityGate] Open.")


verify_scoring_tables()
GATE.run(open_app)
