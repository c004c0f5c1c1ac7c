"""Menu contracts and a callback-holding menu used by the CLI and tests."""

from __future__ import annotations

from typing import Any, Callable, Mapping, Protocol, runtime_checkable

from .models import ViolationsGroup


@runtime_checkable
class Menu(Protocol):
    def initialize_settings(self, initial_node_font_size: int, initial_circle_padding: int) -> "Menu": ...

    def on_settings_changed(self, callback: Callable[[int, int], Any]) -> "Menu": ...

    def on_node_type_filter_changed(self, callback: Callable[[bool, bool], Any]) -> "Menu": ...

    def initialize_dependency_filter(self, dependency_types: list[str]) -> "Menu": ...

    def on_dependency_filter_changed(self, callback: Callable[[Mapping[str, bool]], Any]) -> "Menu": ...

    def on_node_name_filter_changed(self, callback: Callable[[str], Any]) -> "Menu": ...

    def change_node_name_filter(self, filter_string: str) -> None: ...


@runtime_checkable
class ViolationMenu(Protocol):
    def initialize(
        self,
        groups: list[ViolationsGroup],
        show: Callable[[ViolationsGroup], Any],
        hide: Callable[[ViolationsGroup], Any],
    ) -> None: ...

    def on_hide_all_dependencies_changed(self, callback: Callable[[bool], Any]) -> None: ...

    def on_hide_nodes_without_violations_changed(self, callback: Callable[[bool], Any]) -> None: ...

    def on_click_unfold_nodes_to_show_all_violations(self, callback: Callable[[], Any]) -> None: ...

    def on_click_fold_nodes_to_hide_nodes_without_violations(self, callback: Callable[[], Any]) -> None: ...


def _missing(*_args: Any) -> None:
    raise RuntimeError("Menu is not attached to a graph")


class CallbackMenu:
    """Both menus in one object, driven programmatically.

    The graph registers its callbacks through the Menu/ViolationMenu
    methods; the ``set_*``/``click_*`` methods play the part of the user.
    """

    def __init__(self) -> None:
        self.node_font_size: int | None = None
        self.circle_padding: int | None = None
        self.dependency_types: list[str] = []
        self.node_name_filter = ""
        self.violation_groups: list[ViolationsGroup] = []

        self._settings_changed: Callable[[int, int], Any] = _missing
        self._node_type_filter_changed: Callable[[bool, bool], Any] = _missing
        self._dependency_filter_changed: Callable[[Mapping[str, bool]], Any] = _missing
        self._node_name_filter_changed: Callable[[str], Any] = _missing
        self._show: Callable[[ViolationsGroup], Any] = _missing
        self._hide: Callable[[ViolationsGroup], Any] = _missing
        self._hide_all_dependencies_changed: Callable[[bool], Any] = _missing
        self._hide_nodes_without_violations_changed: Callable[[bool], Any] = _missing
        self._unfold_to_violations: Callable[[], Any] = _missing
        self._fold_without_violations: Callable[[], Any] = _missing

    # Menu

    def initialize_settings(self, initial_node_font_size: int, initial_circle_padding: int) -> "CallbackMenu":
        self.node_font_size = initial_node_font_size
        self.circle_padding = initial_circle_padding
        return self

    def on_settings_changed(self, callback: Callable[[int, int], Any]) -> "CallbackMenu":
        self._settings_changed = callback
        return self

    def on_node_type_filter_changed(self, callback: Callable[[bool, bool], Any]) -> "CallbackMenu":
        self._node_type_filter_changed = callback
        return self

    def initialize_dependency_filter(self, dependency_types: list[str]) -> "CallbackMenu":
        self.dependency_types = list(dependency_types)
        return self

    def on_dependency_filter_changed(self, callback: Callable[[Mapping[str, bool]], Any]) -> "CallbackMenu":
        self._dependency_filter_changed = callback
        return self

    def on_node_name_filter_changed(self, callback: Callable[[str], Any]) -> "CallbackMenu":
        self._node_name_filter_changed = callback
        return self

    def change_node_name_filter(self, filter_string: str) -> None:
        self.node_name_filter = filter_string

    # ViolationMenu

    def initialize(
        self,
        groups: list[ViolationsGroup],
        show: Callable[[ViolationsGroup], Any],
        hide: Callable[[ViolationsGroup], Any],
    ) -> None:
        self.violation_groups = list(groups)
        self._show = show
        self._hide = hide

    def on_hide_all_dependencies_changed(self, callback: Callable[[bool], Any]) -> None:
        self._hide_all_dependencies_changed = callback

    def on_hide_nodes_without_violations_changed(self, callback: Callable[[bool], Any]) -> None:
        self._hide_nodes_without_violations_changed = callback

    def on_click_unfold_nodes_to_show_all_violations(self, callback: Callable[[], Any]) -> None:
        self._unfold_to_violations = callback

    def on_click_fold_nodes_to_hide_nodes_without_violations(self, callback: Callable[[], Any]) -> None:
        self._fold_without_violations = callback

    # user actions

    def change_settings(self, node_font_size: int, circle_padding: int) -> None:
        self.node_font_size = node_font_size
        self.circle_padding = circle_padding
        self._settings_changed(node_font_size, circle_padding)

    def set_node_type_filter(self, show_interfaces: bool, show_classes: bool) -> None:
        self._node_type_filter_changed(show_interfaces, show_classes)

    def set_dependency_filter(self, config: Mapping[str, bool]) -> None:
        self._dependency_filter_changed(config)

    def set_node_name_filter(self, filter_string: str) -> None:
        self.node_name_filter = filter_string
        self._node_name_filter_changed(filter_string)

    def get_violation_group(self, rule: str) -> ViolationsGroup:
        for group in self.violation_groups:
            if group.rule == rule:
                return group
        raise KeyError(rule)

    def show_violation_group(self, rule: str) -> None:
        self._show(self.get_violation_group(rule))

    def hide_violation_group(self, rule: str) -> None:
        self._hide(self.get_violation_group(rule))

    def set_hide_all_dependencies_without_violations(self, hide: bool) -> None:
        self._hide_all_dependencies_changed(hide)

    def set_hide_nodes_without_violations(self, hide: bool) -> None:
        self._hide_nodes_without_violations_changed(hide)

    def click_unfold_nodes_to_show_all_violations(self) -> None:
        self._unfold_to_violations()

    def click_fold_nodes_to_hide_nodes_without_violations(self) -> None:
        self._fold_without_violations()
