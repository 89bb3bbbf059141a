"""HQ Studio - comic strips generated panel by panel.

Modules:
    config: Central settings and ``StudioConfig``.
    continuity: The controller deciding what each action sends to the models.
    state: Panel store and per-browser session state.
    gateway: OpenAI-backed and offline generation gateways.
    presentation: Caption display rule and page view models.
    export: Strip rendering and PDF export.
"""

__version__ = "0.1.0"
