"""Concrete dialog graphs for the root, skill and welcome menu bots."""

from skillrelay.flows.main_flow import MAIN_FLOW, MainFlow
from skillrelay.flows.menu_flow import MENU_FLOW, MenuFlow
from skillrelay.flows.skill_flow import SKILL_FLOW, SkillFlow

__all__ = [
    "MAIN_FLOW",
    "MENU_FLOW",
    "SKILL_FLOW",
    "MainFlow",
    "MenuFlow",
    "SkillFlow",
]
