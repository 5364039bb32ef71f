"""
Views for the QuickView framework.

A view holds the variables a template needs, finds the template file by name
and renders it. Templates are plain Python scripts: they run with the view's
variables as globals and whatever they print becomes the view's output.

Views can be nested. A view rendered as the target of another view, or stored
as a variable of another view, sees the outer view's variables as well as its
own; its own definitions always win.
"""

import copy
import io
import logging
import os
import string
import sys
import threading
import traceback
from collections.abc import MutableMapping
from contextlib import contextmanager, redirect_stdout
from typing import Any, Callable, Dict, Hashable, IO, Iterator, List, Optional, Union

from quickview import paths
from quickview.config import get_config
from quickview.errors import EmptyTemplateName, KeyNotFound, TemplateNotFound

logger = logging.getLogger(__name__)

_MISSING = object()


class Ref:
    """
    A shared, mutable cell.

    Binding a `Ref` into a view makes the variable an alias: writes through
    the cell are visible in the view and `view.set()` on that name writes
    back into the cell.
    """

    __slots__ = ("_value",)

    def __init__(self, value: Any = None):
        self._value = value

    def get(self) -> Any:
        return self._value

    def set(self, value: Any):
        self._value = value

    @property
    def value(self) -> Any:
        return self.get()

    @value.setter
    def value(self, value: Any):
        self.set(value)

    def __repr__(self) -> str:
        return f"{type(self).__name__}({self.get()!r})"


class _ViewAlias(Ref):
    """Live cell onto a variable held by another view."""

    __slots__ = ("_view", "_name")

    def __init__(self, view: "ViewScope", name: Hashable):
        self._view = view
        self._name = name

    def get(self) -> Any:
        return self._view.get(self._name)

    def set(self, value: Any):
        self._view.set(self._name, value)

    def __repr__(self) -> str:
        return f"<alias of {self._name!r} on {self._view!r}>"


class _TemplateCell(Ref):
    """Live cell onto a name in a running template's namespace."""

    __slots__ = ("_namespace", "_view", "_name")

    def __init__(self, namespace: Dict[Hashable, Any], view: "ViewScope", name: Hashable):
        self._namespace = namespace
        self._view = view
        self._name = name

    def get(self) -> Any:
        try:
            return self._namespace[self._name]
        except KeyError:
            return self._view.get(self._name)

    def set(self, value: Any):
        self._namespace[self._name] = value
        if self._name in self._view:
            self._view.set(self._name, value)


# ── Rendering guard ────────────────────────────────────────────────

_state = threading.local()


def rendering_in_progress() -> bool:
    """Return True while a view is being rendered on this thread."""
    return getattr(_state, "rendering", False)


@contextmanager
def _rendering():
    # Only the outermost render owns the flag
    outermost = not rendering_in_progress()
    if outermost:
        _state.rendering = True
    try:
        yield outermost
    finally:
        if outermost:
            _state.rendering = False


class ViewScope(MutableMapping):
    """
    A renderable unit: a set of named variables plus a template to show them.

    The variables behave like an ordered dict (`len`, iteration, `view[name]`,
    `name in view`) and can also be reached as attributes (`view.title`).
    Script templates use the `.py` extension; see `TextView` for plain text.
    """

    extension = ".py"

    def __init__(self, default_template: Optional[str] = None, custom_path: Optional[str] = None):
        self._vars: Dict[Hashable, Any] = {}
        self._default_template: Optional[str] = None
        self._custom_path: Optional[str] = None
        self.set_default_template(default_template)
        self.set_custom_path(custom_path)

    @classmethod
    def create(cls, *args, **kwargs) -> "ViewScope":
        """Factory method, handy for chaining: `View.create("page").set(...)`."""
        return cls(*args, **kwargs)

    # ── Settings ────────────────────────────────────────────────────

    def set_default_template(self, name: Optional[str]) -> "ViewScope":
        """Set the template rendered when `render()` gets no target."""
        self._default_template = name
        return self

    def set_custom_path(self, path: Optional[str]) -> "ViewScope":
        """Search this directory only, instead of the global path registry."""
        self._custom_path = path
        return self

    @property
    def default_template(self) -> Optional[str]:
        return self._default_template

    @default_template.setter
    def default_template(self, name: Optional[str]):
        self.set_default_template(name)

    @property
    def custom_path(self) -> Optional[str]:
        return self._custom_path

    @custom_path.setter
    def custom_path(self, path: Optional[str]):
        self.set_custom_path(path)

    # ── Variables ───────────────────────────────────────────────────

    def set(self, name: Hashable, value: Any) -> "ViewScope":
        """
        Set a variable, replacing any previous value.

        If the name is bound to a `Ref`, the value is written into the cell
        instead. Passing a `Ref` as the value binds it.
        """
        if isinstance(value, Ref):
            return self.bind(name, value)
        slot = self._vars.get(name, _MISSING)
        if isinstance(slot, Ref):
            slot.set(value)
        else:
            self._vars[name] = value
        return self

    def bind(self, name: Hashable, ref: Ref) -> "ViewScope":
        """Like `set()`, but the variable aliases the given cell."""
        if not isinstance(ref, Ref):
            raise TypeError(f"bind() expects a Ref, got {type(ref).__name__}")
        self._vars[name] = ref
        return self

    def reference(self, name: Hashable) -> Ref:
        """Return a cell that reads and writes this view's variable live."""
        slot = self._vars.get(name, _MISSING)
        if slot is _MISSING:
            raise KeyNotFound(name)
        if isinstance(slot, Ref):
            return slot
        return _ViewAlias(self, name)

    def exists(self, name: Hashable) -> bool:
        """Return True if the variable is set on this view."""
        return name in self._vars

    def get(self, name: Hashable, default: Any = _MISSING) -> Any:
        """
        Get the value of a variable.

        Raises `KeyNotFound` when the variable is not set, unless a default
        is given.
        """
        try:
            slot = self._vars[name]
        except KeyError:
            if default is _MISSING:
                raise KeyNotFound(name) from None
            return default
        if isinstance(slot, Ref):
            return slot.get()
        return slot

    def remove(self, name: Hashable) -> "ViewScope":
        """Remove a variable; does nothing if it is not set."""
        self._vars.pop(name, None)
        return self

    def clear(self) -> "ViewScope":
        """Remove every variable."""
        self._vars = {}
        return self

    def append(self, value: Any) -> "ViewScope":
        """Store a value under the next free integer index."""
        indexes = [k for k in self._vars if isinstance(k, int) and not isinstance(k, bool)]
        index = max(max(indexes) + 1, 0) if indexes else 0
        return self.set(index, value)

    def inherit(self, parent: "ViewScope", skip: Optional[Hashable] = None) -> "ViewScope":
        """
        Return a clone of this view that also sees `parent`'s variables.

        Variables already defined here are kept; the others are bound as live
        aliases of the parent's. `skip` names a parent variable to leave out.
        """
        return self._inherit(list(parent._vars), parent.reference, skip)

    def _inherit(self, names: List[Hashable], cell_for: Callable[[Hashable], Ref], skip: Optional[Hashable]) -> "ViewScope":
        clone = copy.copy(self)
        for name in names:
            if name != skip and name not in clone._vars:
                clone.bind(name, cell_for(name))
        return clone

    # ── Container protocol ──────────────────────────────────────────

    def __getitem__(self, name: Hashable) -> Any:
        return self.get(name)

    def __setitem__(self, name: Hashable, value: Any):
        self.set(name, value)

    def __delitem__(self, name: Hashable):
        if name not in self._vars:
            raise KeyNotFound(name)
        del self._vars[name]

    def __iter__(self) -> Iterator[Hashable]:
        return iter(self._vars)

    def __len__(self) -> int:
        return len(self._vars)

    def __contains__(self, name) -> bool:
        return self.exists(name)

    def __bool__(self) -> bool:
        return True

    # Views are entities: compared by identity and usable as dict keys
    __eq__ = object.__eq__
    __hash__ = object.__hash__

    def __copy__(self) -> "ViewScope":
        clone = type(self).__new__(type(self))
        clone.__dict__.update(self.__dict__)
        # Plain values are copied, bound cells stay shared
        clone._vars = dict(self._vars)
        return clone

    # ── Attribute access ────────────────────────────────────────────

    def __getattr__(self, name: str) -> Any:
        if name.startswith("_"):
            raise AttributeError(name)
        try:
            return self.get(name)
        except KeyNotFound:
            raise AttributeError(f"Undefined view variable: {name}") from None

    def _class_attribute(self, name: str) -> Any:
        """Return the class attribute for `name`; methods cannot be reassigned."""
        attr = getattr(type(self), name, _MISSING)
        if callable(attr) and not hasattr(attr, "__set__"):
            raise AttributeError(
                f"'{name}' is a {type(self).__name__} method; use view.set({name!r}, ...) or view[{name!r}]"
            )
        return attr

    def __setattr__(self, name: str, value: Any):
        if name.startswith("_") or self._class_attribute(name) is not _MISSING:
            object.__setattr__(self, name, value)
        else:
            self.set(name, value)

    def __delattr__(self, name: str):
        if name.startswith("_") or self._class_attribute(name) is not _MISSING:
            object.__delattr__(self, name)
        elif name in self._vars:
            del self._vars[name]
        else:
            raise AttributeError(f"Undefined view variable: {name}")

    # ── Search paths ────────────────────────────────────────────────

    @staticmethod
    def add_path(path: str):
        """
        Add a path where views are searched for.

        The last path added is the first searched, so directories can be
        layered and individual views overridden.
        """
        paths.add_path(path)

    @staticmethod
    def remove_path(path: str) -> bool:
        return paths.remove_path(path)

    @staticmethod
    def clear_paths():
        paths.clear_paths()

    def resolve(self, name: Optional[str] = None) -> str:
        """Return the template file for `name` (or the default template)."""
        if not name:
            if not self._default_template:
                raise EmptyTemplateName()
            name = self._default_template

        filename = name + self.extension
        if self._custom_path:
            directory = os.path.realpath(self._custom_path)
            searched = [directory]
            path = os.path.join(directory, filename)
        else:
            registry = paths.get_path_registry()
            searched = registry.paths
            path = registry.find(filename)

        if not path or not os.path.isfile(path):
            raise TemplateNotFound(name, searched)
        logger.debug(f"Resolved view `{name}` to {path}")
        return path

    # ── Rendering ───────────────────────────────────────────────────

    def render(self, target: Union[str, "ViewScope", None] = None) -> "ViewScope":
        """
        Render the view and write the output to `sys.stdout`.

        `target` is a template name, another view to render with this view's
        variables, or None for the default template. Nothing is written if
        rendering fails.
        """
        return self.render_to(sys.stdout, target)

    def render_to(self, sink: IO[str], target: Union[str, "ViewScope", None] = None) -> "ViewScope":
        """Render the view and write the output to `sink`."""
        sink.write(self._capture(target))
        return self

    def render_to_string(self, target: Union[str, "ViewScope", None] = None) -> str:
        """Render the view and return the output."""
        return self._capture(target)

    def _capture(self, target) -> str:
        with _rendering():
            with io.StringIO() as buffer:
                with redirect_stdout(buffer):
                    if isinstance(target, ViewScope):
                        target.inherit(self).render()
                    else:
                        self._include(target)
                return buffer.getvalue()

    def _include(self, name: Optional[str]):
        if name is not None and not isinstance(name, str):
            raise TypeError(f"Cannot render {type(name).__name__}; expected a template name or a view")

        namespace = self._namespace()
        seeded = dict(namespace)
        path = self.resolve(name)
        logger.debug(f"Executing view template {path}")
        self._execute(path, namespace)

        # Rebinding a variable inside the template updates the view
        for key, value in seeded.items():
            if key in self._vars and key in namespace and namespace[key] is not value:
                self.set(key, namespace[key])

    def _namespace(self) -> Dict[Hashable, Any]:
        """
        Variables as the template sees them.

        Nested views are replaced by clones whose inherited variables read and
        write this namespace, so they see the template's current values.
        """
        namespace = dict(self.items())
        names = list(self._vars)

        def cell_for(name):
            return _TemplateCell(namespace, self, name)

        for name, value in list(namespace.items()):
            if isinstance(value, ViewScope):
                namespace[name] = value._inherit(names, cell_for, name)
        return namespace

    def _execute(self, path: str, namespace: Dict[Hashable, Any]):
        with open(path, "r", encoding=get_config().encoding) as f:
            source = f.read()
        code = compile(source, path, "exec")
        namespace.setdefault("__name__", "__view__")
        namespace.setdefault("__file__", path)
        exec(code, namespace)

    # ── Conversion ──────────────────────────────────────────────────

    def __str__(self) -> str:
        try:
            return self.render_to_string()
        except Exception:
            if not get_config().display_errors:
                raise
            logger.exception(f"Failed to render {self!r}")
            return traceback.format_exc()

    def __repr__(self) -> str:
        names: List[Hashable] = list(self._vars)
        return f"<{type(self).__name__} default_template={self._default_template!r} variables={names!r}>"


class _TextFormatter(string.Formatter):
    """Looks every field up in the view namespace, `{0}` included."""

    def get_value(self, key, args, kwargs):
        try:
            return kwargs[key]
        except KeyError:
            raise KeyNotFound(key) from None


_formatter = _TextFormatter()


class TextView(ViewScope):
    """
    A view whose templates are plain text with `{name}` placeholders.

    Placeholders follow `str.format` syntax, so `{user.name}` and `{items[0]}`
    work and a literal brace is written `{{`. Numeric fields such as `{0}`
    read the integer keys stored by `append()`. A nested view used as a
    placeholder is rendered in place.
    """

    extension = ".template"

    def _execute(self, path: str, namespace: Dict[Hashable, Any]):
        with open(path, "r", encoding=get_config().encoding) as f:
            template = f.read()
        sys.stdout.write(_formatter.vformat(template, (), namespace))
