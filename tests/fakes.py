"""Minimal stand-ins for the browser objects Pyodide hands to Python."""
from types import SimpleNamespace

UNMASKED_VENDOR_WEBGL = 0x9245
UNMASKED_RENDERER_WEBGL = 0x9246


class FakeGL:
    def __init__(self, renderer, vendor, debug_extension=True):
        self.renderer = renderer
        self.vendor = vendor
        self.debug_extension = debug_extension

    def getExtension(self, name):
        if name == "WEBGL_debug_renderer_info" and self.debug_extension:
            return SimpleNamespace(
                UNMASKED_RENDERER_WEBGL=UNMASKED_RENDERER_WEBGL,
                UNMASKED_VENDOR_WEBGL=UNMASKED_VENDOR_WEBGL,
            )
        return None

    def getParameter(self, code):
        return {UNMASKED_RENDERER_WEBGL: self.renderer, UNMASKED_VENDOR_WEBGL: self.vendor}[code]


class FakeCanvas:
    def __init__(self, contexts):
        self.contexts = contexts
        self.requested = []

    def getContext(self, kind):
        self.requested.append(kind)
        return self.contexts.get(kind)


class FakeElement:
    def __init__(self, element_id=None):
        self.id = element_id
        self.innerHTML = ""
        self.style = SimpleNamespace()
        self.removed_attributes = []

    def removeAttribute(self, name):
        self.removed_attributes.append(name)


class FakeDocument:
    def __init__(self, gl=None, webgl_contexts=None, with_root=True):
        if webgl_contexts is None:
            webgl_contexts = {"webgl": gl} if gl is not None else {}
        self.webgl_contexts = webgl_contexts
        self.canvases = []
        self.body = FakeElement("body")
        self.elements = {}
        if with_root:
            self.elements["root"] = FakeElement("root")
        self.listeners = []

    def createElement(self, tag):
        assert tag == "canvas"
        canvas = FakeCanvas(self.webgl_contexts)
        self.canvases.append(canvas)
        return canvas

    def getElementById(self, element_id):
        if element_id in self.elements:
            return self.elements[element_id]
        # Elements injected through innerHTML become addressable
        for host in [self.body] + list(self.elements.values()):
            if f'id="{element_id}"' in host.innerHTML:
                self.elements[element_id] = FakeElement(element_id)
                return self.elements[element_id]
        return None

    def addEventListener(self, event_name, handler, use_capture=False):
        self.listeners.append((event_name, handler, use_capture))


class FakeEvent:
    def __init__(self):
        self.prevented = False
        self.stopped = False

    def preventDefault(self):
        self.prevented = True

    def stopPropagation(self):
        self.stopped = True


def make_window(user_agent="", platform="", width=0, height=0, pixel_ratio=1,
                cores=0, memory=None, max_touch_points=0, touch_handler=False,
                renderer=None, vendor=None):
    """Builds a window whose navigator/screen mirror the given values."""
    navigator = SimpleNamespace(
        userAgent=user_agent,
        platform=platform,
        hardwareConcurrency=cores,
        maxTouchPoints=max_touch_points,
    )
    # deviceMemory is absent outside Chromium
    if memory is not None:
        navigator.deviceMemory = memory

    gl = FakeGL(renderer, vendor) if renderer is not None else None
    document = FakeDocument(gl=gl)

    window = SimpleNamespace(
        navigator=navigator,
        screen=SimpleNamespace(width=width, height=height),
        devicePixelRatio=pixel_ratio,
        document=document,
    )
    if touch_handler:
        window.ontouchstart = None
    return window


class ExplodingObject:
    """Every attribute read raises, like a revoked or hostile JS proxy."""
    def __getattr__(self, name):
        raise RuntimeError(f"probe {name} blocked")
