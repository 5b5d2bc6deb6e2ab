from __future__ import annotations

from typing import Dict

from .appconfig import ConfigPanel
from .base import PanelContext
from .forwards import ForwardsPanel
from .keys import KeysPanel
from .rules import RulesPanel
from .sync import SyncPanel
from .users import UsersPanel


PANEL_TYPES = (RulesPanel, ForwardsPanel, UsersPanel, KeysPanel, SyncPanel, ConfigPanel)


def register_panels(router, ctx: PanelContext) -> Dict[str, object]:
    """Register every admin panel on the router in tab-strip order."""
    panels = {}
    for panel_type in PANEL_TYPES:
        panel = panel_type(ctx)
        router.register(panel.tab_id, panel.load, panel.label)
        panels[panel.tab_id] = panel
    return panels
