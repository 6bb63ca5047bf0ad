from __future__ import annotations

from typing import Dict, Iterable, Iterator, List, Tuple

CONTENT_TYPE_LATEST = "text/plain; version=0.0.4; charset=utf-8"

LabelKey = Tuple[str, ...]
Sample = Tuple[str, Dict[str, str], float]

_REGISTRY: List["_Metric"] = []


class _Metric:
    type = "untyped"

    def __init__(self, name: str, documentation: str, labelnames: Iterable[str] | None = None, register: bool = True):
        self.name = name
        self.documentation = documentation
        self.labelnames: LabelKey = tuple(labelnames or ())
        if register:
            _REGISTRY.append(self)

    def _key(self, labels: Dict[str, str]) -> LabelKey:
        expected = set(self.labelnames)
        given = set(labels)
        if given != expected:
            raise ValueError(
                f"Label mismatch for {self.name}: expected {sorted(expected)}, got {sorted(given)}"
            )
        return tuple(str(labels[name]) for name in self.labelnames)

    def _label_dict(self, key: LabelKey) -> Dict[str, str]:
        return dict(zip(self.labelnames, key))

    def labels(self, **labels: str) -> "_Bound":
        return _Bound(self, self._key(labels))

    def samples(self) -> Iterator[Sample]:
        raise NotImplementedError


class _Bound:
    """A metric pinned to one label combination."""

    def __init__(self, metric: _Metric, key: LabelKey):
        self._metric = metric
        self._key = key

    def inc(self, amount: float = 1.0) -> None:
        self._metric._add(self._key, amount)

    def dec(self, amount: float = 1.0) -> None:
        self._metric._add(self._key, -amount)

    def set(self, value: float) -> None:
        self._metric._set(self._key, value)

    def observe(self, value: float) -> None:
        self._metric._observe(self._key, value)


class _Valued(_Metric):
    def __init__(self, name: str, documentation: str, labelnames: Iterable[str] | None = None, register: bool = True):
        super().__init__(name, documentation, labelnames, register)
        self._values: Dict[LabelKey, float] = {}

    def _add(self, key: LabelKey, amount: float) -> None:
        self._values[key] = self._values.get(key, 0.0) + amount

    def value(self, **labels: str) -> float:
        return self._values.get(self._key(labels), 0.0)

    def samples(self) -> Iterator[Sample]:
        for key, value in self._values.items():
            yield self.name, self._label_dict(key), value


class Counter(_Valued):
    type = "counter"

    def inc(self, amount: float = 1.0) -> None:
        self._add((), amount)

    def _add(self, key: LabelKey, amount: float) -> None:
        if amount < 0:
            raise ValueError("Counters can only increase")
        super()._add(key, amount)


class Gauge(_Valued):
    type = "gauge"

    def inc(self, amount: float = 1.0) -> None:
        self._add((), amount)

    def dec(self, amount: float = 1.0) -> None:
        self._add((), -amount)

    def set(self, value: float) -> None:
        self._set((), value)

    def _set(self, key: LabelKey, value: float) -> None:
        self._values[key] = float(value)


class Histogram(_Metric):
    type = "histogram"

    def __init__(
        self,
        name: str,
        documentation: str,
        buckets: Iterable[float],
        labelnames: Iterable[str] | None = None,
        register: bool = True,
    ):
        super().__init__(name, documentation, labelnames, register)
        bounds = sorted(float(bound) for bound in buckets)
        if not bounds or bounds[-1] != float("inf"):
            bounds.append(float("inf"))
        self.buckets: Tuple[float, ...] = tuple(bounds)
        self._counts: Dict[LabelKey, List[int]] = {}
        self._sums: Dict[LabelKey, float] = {}

    def observe(self, value: float) -> None:
        self._observe((), value)

    def _observe(self, key: LabelKey, value: float) -> None:
        counts = self._counts.setdefault(key, [0] * len(self.buckets))
        for index, upper in enumerate(self.buckets):
            if value <= upper:
                counts[index] += 1
                break
        self._sums[key] = self._sums.get(key, 0.0) + value

    def count(self, **labels: str) -> int:
        return sum(self._counts.get(self._key(labels), []))

    def samples(self) -> Iterator[Sample]:
        for key, counts in self._counts.items():
            labels = self._label_dict(key)
            running = 0
            for upper, hits in zip(self.buckets, counts):
                running += hits
                le = "+Inf" if upper == float("inf") else _format_value(upper)
                yield f"{self.name}_bucket", {**labels, "le": le}, running
            yield f"{self.name}_count", labels, running
            yield f"{self.name}_sum", labels, self._sums.get(key, 0.0)


def _format_value(value: float) -> str:
    return str(int(value)) if float(value).is_integer() else repr(float(value))


def _format_labels(labels: Dict[str, str]) -> str:
    if not labels:
        return ""
    pairs = []
    for name, value in sorted(labels.items()):
        escaped = str(value).replace("\\", "\\\\").replace('"', '\\"')
        pairs.append(f'{name}="{escaped}"')
    return "{" + ",".join(pairs) + "}"


def generate_latest(registry: Iterable[_Metric] | None = None) -> bytes:
    """Render every registered metric in the Prometheus text format."""
    lines: List[str] = []
    for metric in _REGISTRY if registry is None else registry:
        lines.append(f"# HELP {metric.name} {metric.documentation}")
        lines.append(f"# TYPE {metric.name} {metric.type}")
        for sample_name, labels, value in metric.samples():
            lines.append(f"{sample_name}{_format_labels(labels)} {_format_value(value)}")
    return ("\n".join(lines) + "\n").encode("utf-8")
