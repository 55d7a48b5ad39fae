"""
终端视图

用 click 在终端中显示版本选择弹窗。
"""

from typing import List, Optional

import click

from moddepupdater.i18n import Translator
from moddepupdater.models import BatchItem, CandidateChoice, Mode
from moddepupdater.ui.view import ModalView


class TerminalModalView(ModalView):
    def __init__(self, translator: Translator):
        self.t = translator
        self.items: List[BatchItem] = []
        self.active_key: Optional[str] = None
        self.choices: List[CandidateChoice] = []
        self.checked_id: Optional[str] = None

    def show(self, mode: Mode) -> None:
        title = (
            self.t("modal_title_batch", "Select versions")
            if mode is Mode.BATCH
            else self.t("modal_title_single", "Select a version")
        )
        click.secho(f"== {title} ==", bold=True)

    def hide(self) -> None:
        self.checked_id = None

    def clear(self) -> None:
        self.items = []
        self.active_key = None
        self.choices = []
        self.checked_id = None

    def render_tiles(self, items: List[BatchItem], active_key: Optional[str]) -> None:
        self.items = list(items)
        self.active_key = active_key
        self._echo_tiles()

    def set_active_tile(self, key: str) -> None:
        if key != self.active_key:
            self.active_key = key
            self._echo_tiles()

    def _echo_tiles(self) -> None:
        for idx, item in enumerate(self.items, 1):
            marker = "*" if item.key == self.active_key else " "
            click.echo(f" {marker} [{idx}] {item.display_name or item.key}")

    def show_loading(self, key: Optional[str] = None) -> None:
        click.echo(self.t("log_loading", "Loading..."))

    def render_candidates(
        self,
        choices: List[CandidateChoice],
        checked_id: Optional[str],
        key: Optional[str] = None,
    ) -> None:
        self.choices = list(choices)
        self.checked_id = checked_id
        if key:
            click.secho(key, fg="cyan")
        for idx, choice in enumerate(self.choices, 1):
            mark = "(x)" if choice.id == checked_id else "( )"
            click.echo(f"   {mark} {idx}. {choice.label}")

    def set_checked(self, choice_id: str) -> None:
        self.checked_id = choice_id
        for choice in self.choices:
            if choice.id == choice_id:
                click.echo(self.t("modal_selected", "Selected: {label}", {"label": choice.label}))
