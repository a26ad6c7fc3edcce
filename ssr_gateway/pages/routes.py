"""Route table and path matching for page requests.

Patterns follow the client-side router's conventions so the same table can
be shared with the browser bundle:

- Literal segments: ``/about``
- Named parameters: ``/article/:slug`` (``{slug}`` is accepted too)
- Optional parameters: ``/search/:term?``
- Wildcards: ``/docs/*`` (captured as parameter ``"0"``, ``"1"``, ...)

Without ``exact`` a pattern matches any path it is a segment prefix of, so
``/blog`` matches ``/blog/2021``. The first route in table order that matches
wins; overlapping patterns are resolved by their position only.
"""

import re
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, Iterable, Iterator, List, Mapping, Optional, Tuple, Union

from ..shared.logger import log_trace

PathSpec = Union[None, str, Tuple[str, ...]]

_PARAM_SEGMENT = re.compile(r"^(?::(?P<colon>\w+)|\{(?P<brace>\w+)\})(?P<optional>\?)?$")


@dataclass(frozen=True)
class RouteMatch:
    """Result of matching a request path against a route."""
    route: "RouteDescriptor"
    path: Optional[str]
    url: str
    is_exact: bool
    params: Dict[str, str] = field(default_factory=dict)


@dataclass(frozen=True)
class CompiledPattern:
    regex: re.Pattern
    param_names: Tuple[str, ...]


class PathPatternMatcher:
    """Compiles route patterns to regular expressions and matches paths."""

    def __init__(self):
        self._pattern_cache: Dict[Tuple[str, bool, bool, bool], CompiledPattern] = {}

    def match(self, pattern: str, pathname: str, exact: bool = False,
              strict: bool = False, sensitive: bool = False) -> Optional[Tuple[str, bool, Dict[str, str]]]:
        """Match ``pathname`` against a single pattern.

        Returns:
            ``(url, is_exact, params)`` or None when the pattern does not match
            (or only matches a prefix while ``exact`` is requested).
        """
        compiled = self._compile(pattern, exact, strict, sensitive)
        m = compiled.regex.match(pathname)
        if not m:
            return None

        url = m.group(0)
        if pattern == "/" and url == "":
            url = "/"
        is_exact = pathname == url
        if exact and not is_exact:
            return None

        params = {
            name: value
            for name, value in zip(compiled.param_names, m.groups())
            if value is not None
        }
        return url, is_exact, params

    def _compile(self, pattern: str, end: bool, strict: bool, sensitive: bool) -> CompiledPattern:
        cache_key = (pattern, end, strict, sensitive)
        if cache_key in self._pattern_cache:
            return self._pattern_cache[cache_key]

        param_names: List[str] = []
        regex_parts: List[str] = []
        wildcard_index = 0

        trailing_slash = len(pattern) > 1 and pattern.endswith("/")
        for part in pattern.strip("/").split("/"):
            if not part:
                continue
            param = _PARAM_SEGMENT.match(part)
            if param:
                param_names.append(param.group("colon") or param.group("brace"))
                if param.group("optional"):
                    regex_parts.append("(?:/([^/]+?))?")
                else:
                    regex_parts.append("/([^/]+?)")
            elif part == "*":
                param_names.append(str(wildcard_index))
                wildcard_index += 1
                regex_parts.append("/(.*)")
            else:
                regex_parts.append("/" + re.escape(part))

        regex = "^" + "".join(regex_parts)
        if strict and trailing_slash:
            regex += "/"

        if end:
            regex += ("" if strict else "/?") + "$"
        else:
            if not strict:
                regex += "(?:/(?=$))?"
            regex += "(?=/|$)"

        compiled = CompiledPattern(
            regex=re.compile(regex, 0 if sensitive else re.IGNORECASE),
            param_names=tuple(param_names),
        )
        self._pattern_cache[cache_key] = compiled
        return compiled


_default_matcher = PathPatternMatcher()


@dataclass(frozen=True)
class RouteDescriptor:
    """A path-matching rule paired with an optional data-loading function.

    ``fetch_initial_data(request)`` may be a plain function or a coroutine
    function. ``predicate(pathname)`` replaces pattern matching entirely; it
    returns a truthy value to match, and a mapping return value becomes the
    match parameters. A descriptor with neither ``path`` nor ``predicate``
    matches every path.
    """
    path: PathSpec = None
    fetch_initial_data: Optional[Callable[..., Any]] = None
    exact: bool = False
    strict: bool = False
    sensitive: bool = False
    predicate: Optional[Callable[[str], Any]] = None
    name: Optional[str] = None
    component: Any = None

    def __post_init__(self):
        if isinstance(self.path, (list, tuple)):
            object.__setattr__(self, "path", tuple(self.path))

    @property
    def patterns(self) -> Tuple[str, ...]:
        if self.path is None:
            return ()
        if isinstance(self.path, str):
            return (self.path,)
        return self.path

    def match(self, pathname: str, matcher: PathPatternMatcher = _default_matcher) -> Optional[RouteMatch]:
        if self.predicate is not None:
            result = self.predicate(pathname)
            if not result:
                return None
            params = dict(result) if isinstance(result, Mapping) else {}
            return RouteMatch(route=self, path=None, url=pathname, is_exact=True, params=params)

        if self.path is None:
            return RouteMatch(route=self, path=None, url=pathname, is_exact=True)

        for pattern in self.patterns:
            result = matcher.match(pattern, pathname, exact=self.exact,
                                   strict=self.strict, sensitive=self.sensitive)
            if result:
                url, is_exact, params = result
                return RouteMatch(route=self, path=pattern, url=url, is_exact=is_exact, params=params)
        return None

    @classmethod
    def from_mapping(cls, config: Mapping[str, Any]) -> "RouteDescriptor":
        """Build a descriptor from a route-table entry written as a mapping.

        Both ``fetch_initial_data`` and the browser-side spelling
        ``fetchInitialData`` are accepted.
        """
        return cls(
            path=config.get("path"),
            fetch_initial_data=config.get("fetch_initial_data", config.get("fetchInitialData")),
            exact=bool(config.get("exact", False)),
            strict=bool(config.get("strict", False)),
            sensitive=bool(config.get("sensitive", False)),
            predicate=config.get("predicate"),
            name=config.get("name"),
            component=config.get("component"),
        )


RouteEntry = Union[RouteDescriptor, Mapping[str, Any]]


class RouteTable:
    """Ordered, immutable sequence of route descriptors."""

    def __init__(self, routes: Iterable[RouteEntry] = (), matcher: Optional[PathPatternMatcher] = None):
        self._routes: Tuple[RouteDescriptor, ...] = tuple(
            route if isinstance(route, RouteDescriptor) else RouteDescriptor.from_mapping(route)
            for route in routes
        )
        self._matcher = matcher or _default_matcher

    def __iter__(self) -> Iterator[RouteDescriptor]:
        return iter(self._routes)

    def __len__(self) -> int:
        return len(self._routes)

    def match(self, pathname: str) -> Optional[RouteMatch]:
        """Return the first route matching ``pathname``, or None."""
        for route in self._routes:
            found = route.match(pathname, self._matcher)
            if found:
                log_trace(f"Route {route.name or route.path!r} matched {pathname}", component="render_pipeline")
                return found
        return None
