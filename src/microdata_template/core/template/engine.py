"""Render dispatcher: binds data to microdata-marked template roots.

    engine = MicrodataTemplate()
    soup = engine.parse('<ul><li itemscope hidden>{{ VALUE }}</li></ul>')
    engine.render(soup.li, ["x", "y"])
    # <ul><li itemscope="" hidden="">{{ VALUE }}</li><li>x</li><li>y</li></ul>

Each render removes whatever followed the template anchor before inserting
the new clones, so rendering the same root twice leaves one copy of the
output. Data shapes:

    [{"id": 1}, {"id": 2}]   collection  one clone per item
    ["x", "y"] / []          array       one clone per item, VALUE is the item
    {"amount": 1234567}      object      one clone, or one per property with forin
"""
from __future__ import annotations

import logging
from typing import Any, Callable, List, Optional

from bs4 import BeautifulSoup, Tag

from microdata_template.core.config import ConfigManager, EngineConfig
from microdata_template.core.exceptions import TemplateError

from . import dom
from .evaluator import RenderContext, TokenEvaluator
from .grammar import extract_token
from .resolver import get_property, is_object, is_scalar, iter_properties
from .transformers import TransformerRegistry, TransformerType
from .walker import RenderDiagnostic, TreeWalker, requests_forin

logger = logging.getLogger(__name__)

STRATEGY_OBJECT = "object"
STRATEGY_ARRAY = "array"
STRATEGY_COLLECTION = "collection"


def classify(data: Any) -> Optional[str]:
    """Name the render strategy for ``data``; None when it cannot be rendered."""
    if isinstance(data, (list, tuple)):
        if data and not is_scalar(data[0]):
            return STRATEGY_COLLECTION
        return STRATEGY_ARRAY
    if is_object(data):
        return STRATEGY_OBJECT
    return None


class MicrodataTemplate:
    """A template engine instance with its own transformers and toggles."""

    def __init__(
        self,
        config: Optional[EngineConfig] = None,
        registry: Optional[TransformerRegistry] = None,
    ) -> None:
        """Initialize the engine.

        Args:
            config: Engine toggles; bundled defaults when omitted
            registry: Transformers to start from; the engine keeps its own copy
        """
        cfg = config or EngineConfig()
        self._strict_standard = cfg.strict_standard
        self._show_heritage = cfg.show_heritage
        self._strip_bom = cfg.strip_bom
        self.parser = cfg.parser
        self._registry = registry.copy() if registry is not None else TransformerRegistry()
        self._evaluator = TokenEvaluator(self._registry)
        self._walker = self._new_walker()
        self._element: Optional[Tag] = None
        self._source: Any = None
        self._bound: List[Tag] = []

    @classmethod
    def from_config(cls, config_path: Optional[Any] = None) -> "MicrodataTemplate":
        """Build an engine from bundled defaults, a YAML file and the environment."""
        return cls(ConfigManager(config_path).engine_config())

    # ------------------------------------------------------------------
    # Toggles and accessors
    # ------------------------------------------------------------------

    @property
    def strict_standard(self) -> bool:
        return self._strict_standard

    @strict_standard.setter
    def strict_standard(self, value: bool) -> None:
        self._strict_standard = bool(value)

    @property
    def show_heritage(self) -> bool:
        return self._show_heritage

    @show_heritage.setter
    def show_heritage(self, value: bool) -> None:
        self._show_heritage = bool(value)

    @property
    def strip_bom(self) -> bool:
        return self._strip_bom

    @strip_bom.setter
    def strip_bom(self, value: bool) -> None:
        self._strip_bom = bool(value)

    @property
    def element(self) -> Optional[Tag]:
        """The template root bound by the last render."""
        return self._element

    @property
    def source(self) -> Any:
        """The data passed to the last render."""
        return self._source

    @source.setter
    def source(self, value: Any) -> None:
        self._source = value

    @property
    def registry(self) -> TransformerRegistry:
        return self._registry

    @property
    def transformer_names(self) -> List[str]:
        return self._registry.names()

    @property
    def diagnostics(self) -> List[RenderDiagnostic]:
        """Problems recorded during the last render or refresh."""
        return list(self._walker.diagnostics)

    def is_bound(self, element: Tag) -> bool:
        """True when rendered output currently follows the template of ``element``."""
        anchor = dom.find_template_root(element, self._strict_standard)
        return anchor is not None and any(bound is anchor for bound in self._bound)

    # ------------------------------------------------------------------
    # Transformers
    # ------------------------------------------------------------------

    def set_transformer(self, name: str, func: TransformerType) -> bool:
        """Register a transformer; False when the name is taken or reserved."""
        return self._registry.register(name, func)

    register_transformer = set_transformer

    # ------------------------------------------------------------------
    # Rendering
    # ------------------------------------------------------------------

    def parse(self, markup: str) -> BeautifulSoup:
        return dom.parse_html(markup, parser=self.parser, strip_bom=self._strip_bom)

    def render(self, element: Tag, data: Any) -> None:
        """Bind ``data`` to the template at (or, in strict mode, below) ``element``.

        In strict mode an element without a marked template root is a no-op.
        """
        self._walker = self._new_walker()
        anchor = dom.find_template_root(element, self._strict_standard)
        if anchor is None:
            logger.debug("No itemscope/hidden template root under <%s>; nothing to render", element.name)
            return

        self._element = anchor
        self._source = data
        logger.debug(
            "Rendering <%s> itemtype=%r itemid=%r",
            anchor.name,
            dom.get_attr(anchor, dom.MARKER_SCHEMA),
            dom.get_attr(anchor, dom.MARKER_BINDER),
        )

        strategy = classify(data)
        if strategy is None:
            logger.debug("Ignoring %s data for <%s>", type(data).__name__, anchor.name)
            return
        if self._bind(anchor, data, strategy):
            self._remember(anchor)

    def refresh(self, element: Tag, data: Any) -> None:
        """Re-run nested template dispatch under ``element`` against ``data``."""
        self._walker = self._new_walker()
        ctx = self._context(data)
        for nested in dom.iter_nested_templates(element, self._strict_standard):
            self._walker.dispatch_nested(nested, ctx)

    def render_nested(self, node: Tag, ctx: RenderContext) -> None:
        """Render a nested template from the enclosing datum.

        The source marker is read as a token expression when it holds
        ``{{ }}``, then as a property of the datum, then as a bare expression.
        A value that is not a container clears the nested output.
        """
        source = dom.nested_source(node, self._strict_standard)
        if not source or not source.strip():
            return
        value = self._resolve_source(source, ctx)
        strategy = classify(value)
        if strategy is None:
            dom.clear_after(node)
            return
        self._bind(node, value, strategy)

    def clear(self, element: Optional[Tag] = None, callback: Optional[Callable[[], Any]] = None) -> None:
        """Remove the rendered output after the template anchor.

        Defaults to the element bound by the last render. ``callback`` is
        invoked afterwards when callable.
        """
        target = element if element is not None else self._element
        anchor = dom.find_template_root(target, self._strict_standard) if target is not None else None
        if anchor is not None:
            removed = dom.clear_after(anchor)
            self._forget(anchor)
            logger.debug("Cleared %d node(s) after <%s>", removed, anchor.name)
        if callable(callback):
            callback()

    def render_markup(self, markup: str, data: Any, selector: str = "[itemscope]") -> str:
        """Parse ``markup``, render its first ``selector`` match and return the document."""
        soup = self.parse(markup)
        element = soup.select_one(selector)
        if element is None:
            raise TemplateError(f"No element matches {selector!r}", context={"selector": selector})
        self.render(element, data)
        return str(soup)

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------

    def _new_walker(self) -> TreeWalker:
        return TreeWalker(
            self._evaluator,
            self.render_nested,
            strict=self._strict_standard,
            parser=self.parser,
            strip_bom=self._strip_bom,
        )

    def _context(self, datum: Any, index: int = 0, key: Optional[str] = None) -> RenderContext:
        return RenderContext(datum, index=index, key=key, show_heritage=self._show_heritage)

    def _contexts(self, anchor: Tag, data: Any, strategy: str) -> List[RenderContext]:
        if strategy == STRATEGY_OBJECT:
            if requests_forin(anchor, self._strict_standard):
                keys = iter_properties(data, self._show_heritage)
                return [self._context(data, i, key) for i, key in enumerate(keys)]
            return [self._context(data)]
        return [self._context(item, i) for i, item in enumerate(data)]

    def _bind(self, anchor: Tag, data: Any, strategy: str) -> bool:
        """Render clones after ``anchor``; False when the anchor was bound in place."""
        contexts = self._contexts(anchor, data, strategy)
        logger.debug("Binding %d %s clone(s) to <%s>", len(contexts), strategy, anchor.name)

        if anchor.parent is None:
            logger.debug("Template <%s> is detached; binding it in place", anchor.name)
            dom.denude(anchor)
            if contexts:
                self._walker.walk(anchor, contexts[0])
            return False

        dom.clear_after(anchor)
        clones = []
        for ctx in contexts:
            fragment = dom.denude(dom.clone(anchor))
            self._walker.walk(fragment, ctx)
            clones.append(fragment)
        dom.insert_after(anchor, clones)
        return True

    def _resolve_source(self, source: str, ctx: RenderContext) -> Any:
        inner = extract_token(source)
        if inner is not None:
            return self._evaluator.resolve_value(inner, ctx)
        name = source.strip()
        if ctx.has(name):
            return get_property(ctx.datum, name)
        return self._evaluator.resolve_value(name, ctx)

    def _remember(self, anchor: Tag) -> None:
        if not any(bound is anchor for bound in self._bound):
            self._bound.append(anchor)

    def _forget(self, anchor: Tag) -> None:
        self._bound = [bound for bound in self._bound if bound is not anchor]


__all__ = [
    "MicrodataTemplate",
    "classify",
    "STRATEGY_OBJECT",
    "STRATEGY_ARRAY",
    "STRATEGY_COLLECTION",
]
