"""Chart and table view-models built from server-side aggregates.

Nothing here computes statistics. Aggregates arrive already keyed by
category with percentage values; this module only orders score buckets,
labels them and reshapes the numbers for the templates.
"""

from dataclasses import dataclass, field
from typing import Any, Iterable, Optional, Union


SCORE_ORDER = (
    "score 0-26",
    "score 27-30",
    "score 31-35",
    "score 36-40",
    "score > 41",
)

SCORE_LABELS = {
    "score 0-26": "Trés Faible",
    "score 27-30": "Faible",
    "score 31-35": "Moyen",
    "score 36-40": "Élevé",
    "score > 41": "Trés Élevé",
}

GROUP_TITLES = {
    "group1": "Perturbation psychosomatique",
    "group2": "Perturbation cognitive",
    "group3": "Perturbation émotionnelle",
    "group4": "Souvenirs traumatisants",
}

GROUP_DESCRIPTIONS = {
    "group1": "Manifestations physiques résultant du stress psychologique.",
    "group2": "Difficultés liées à la concentration, la mémoire et la prise de décision.",
    "group3": "Changements dans la régulation des émotions et l'humeur.",
    "group4": "Reviviscences et pensées intrusives liées aux événements traumatiques.",
}

PALETTE = (
    "rgba(54, 162, 235, 0.8)",
    "rgba(255, 99, 132, 0.8)",
    "rgba(75, 192, 192, 0.8)",
    "rgba(255, 206, 86, 0.8)",
    "rgba(153, 102, 255, 0.8)",
)

DEMOGRAPHIC_COLORS = ("#1D4ED8", "#B91C1C", "#15803D", "#7C3AED", "#EA580C")

TABLE_SECTIONS = (
    ("genders", "Genre"),
    ("ages", "Âge"),
    ("state", "État civil"),
    ("exp_years", "Années d'expérience"),
    ("exp_years_c", "Années d'expérience dans le service actuel"),
    ("service", "Service"),
    ("nb_childs", "Nombre d'enfants"),
)

Bucket = Union[str, dict]


def _bucket_key(entry: Bucket) -> str:
    return entry["score"] if isinstance(entry, dict) else entry


def bucket_rank(key: str) -> int:
    """Position of a bucket in the fixed order; unknown buckets sort last."""
    try:
        return SCORE_ORDER.index(key)
    except ValueError:
        return len(SCORE_ORDER)


def sort_buckets(entries: Iterable[Bucket]) -> list:
    """Order bucket keys or ``{"score", "value"}`` rows by the fixed rank."""
    return sorted(entries, key=lambda entry: bucket_rank(_bucket_key(entry)))


def label_bucket(key: str) -> str:
    """Display name of a bucket, falling back to the key itself."""
    return SCORE_LABELS.get(key, key)


@dataclass
class Dataset:
    label: str
    data: list[float]
    color: Union[str, list[str]] = PALETTE[0]


@dataclass
class ChartData:
    """Everything a chart component needs."""
    kind: str  # bar, horizontal-bar, pie, radar
    title: str
    labels: list[str]
    datasets: list[Dataset] = field(default_factory=list)
    percent: bool = True

    def to_json(self) -> dict[str, Any]:
        return {
            "kind": self.kind,
            "title": self.title,
            "labels": self.labels,
            "percent": self.percent,
            "datasets": [
                {"label": d.label, "data": d.data, "color": d.color}
                for d in self.datasets
            ],
        }


@dataclass
class TableRow:
    type: str
    effectif: Any
    percentage: Any


@dataclass
class TableSection:
    title: str
    rows: list[TableRow]


def score_legend() -> list[tuple[str, str]]:
    return [(SCORE_LABELS[key], key) for key in SCORE_ORDER]


# Demographics

def pie_chart(title: str, breakdown: dict[str, float]) -> ChartData:
    labels = list(breakdown)
    return ChartData(
        kind="pie",
        title=title,
        labels=labels,
        datasets=[Dataset(
            label=title,
            data=[breakdown[k] for k in labels],
            color=[DEMOGRAPHIC_COLORS[i % len(DEMOGRAPHIC_COLORS)] for i in range(len(labels))],
        )],
    )


def grouped_bar_chart(title: str, nested: dict[str, dict[str, float]], horizontal: bool = False) -> ChartData:
    """One dataset per outer key, categories taken from the first group."""
    groups = list(nested)
    labels = list(nested[groups[0]]) if groups else []
    return ChartData(
        kind="horizontal-bar" if horizontal else "bar",
        title=title,
        labels=labels,
        datasets=[
            Dataset(
                label=group,
                data=[nested[group].get(label, 0) for label in labels],
                color=DEMOGRAPHIC_COLORS[i % len(DEMOGRAPHIC_COLORS)],
            )
            for i, group in enumerate(groups)
        ],
    )


def demographic_charts(stats: dict) -> list[ChartData]:
    demographics = stats.get("demographics") or {}
    charts = []
    for key, title in (
        ("bySex", "Distribution par Sexe"),
        ("byMaritalState", "Distribution par État Civil"),
        ("byService", "Distribution par Service"),
    ):
        if demographics.get(key):
            charts.append(pie_chart(title, demographics[key]))
    for key, title in (
        ("sexByMaritalState", "Sexe par État Civil"),
        ("sexByService", "Sexe par Service"),
        ("maritalStateByService", "État Civil par Service"),
    ):
        if demographics.get(key):
            charts.append(grouped_bar_chart(title, demographics[key]))
    return charts


def question_charts(question: dict) -> list[ChartData]:
    """Per-question response breakdowns, as horizontal percentage bars."""
    charts = []
    for key, title in (
        ("responseBySex", "Distribution par Sexe"),
        ("responseByMaritalState", "Distribution par État Civil"),
        ("responseByService", "Distribution par Service"),
    ):
        if question.get(key):
            charts.append(grouped_bar_chart(title, question[key], horizontal=True))
    return charts


# Tables

def table_sections(table: dict) -> list[TableSection]:
    sections = []
    for key, title in TABLE_SECTIONS:
        rows = [
            TableRow(type=row.get("type"), effectif=row.get("effectif"), percentage=row.get("percentage"))
            for row in table.get(key) or []
        ]
        sections.append(TableSection(title=title, rows=rows))
    return sections


# Scores

def global_score_chart(global_data: dict) -> ChartData:
    rows = sort_buckets(global_data.get("global") or [])
    return ChartData(
        kind="bar",
        title="Score Global",
        labels=[label_bucket(row["score"]) for row in rows],
        datasets=[Dataset(
            label="Score Global",
            data=[row["value"] for row in rows],
            color=[PALETTE[i % len(PALETTE)] for i in range(len(rows))],
        )],
    )


def category_score_chart(category_data: list[dict], title: str) -> ChartData:
    """Scores per category type (Homme, Femme, ...) on a shared bucket axis."""
    keys = {s["score"] for category in category_data for s in category.get("score", [])}
    buckets = sort_buckets(keys)
    datasets = []
    for i, category in enumerate(category_data):
        values = {s["score"]: s["value"] for s in category.get("score", [])}
        datasets.append(Dataset(
            label=category.get("type", ""),
            data=[values.get(bucket, 0) for bucket in buckets],
            color=PALETTE[i % len(PALETTE)],
        ))
    return ChartData(
        kind="horizontal-bar",
        title=title,
        labels=[label_bucket(bucket) for bucket in buckets],
        datasets=datasets,
    )


def global_category_charts(global_data: dict) -> list[ChartData]:
    charts = []
    for key, title in (
        ("genders", "Scores par Genre"),
        ("ages", "Scores par Âge"),
        ("state", "Scores par État Civil"),
        ("service", "Scores par Service"),
    ):
        if global_data.get(key):
            charts.append(category_score_chart(global_data[key], title))
    return charts


def group_title(group_id: str) -> str:
    return GROUP_TITLES.get(group_id, group_id)


def custom_group_chart(custom_data: dict, group_id: str) -> ChartData:
    rows = sort_buckets(custom_data.get(group_id) or [])
    # group4 and unknown groups share the last colour
    index = list(GROUP_TITLES).index(group_id) if group_id in GROUP_TITLES else 3
    return ChartData(
        kind="bar",
        title=group_title(group_id),
        labels=[label_bucket(row["score"]) for row in rows],
        datasets=[Dataset(
            label=group_title(group_id),
            data=[row["value"] for row in rows],
            color=PALETTE[index],
        )],
    )


def radar_chart(global_data: dict, custom_data: dict, group_id: str) -> ChartData:
    """Global distribution against one group, every bucket on the axis."""
    global_values = {row["score"]: row["value"] for row in global_data.get("global") or []}
    group_values = {row["score"]: row["value"] for row in custom_data.get(group_id) or []}
    return ChartData(
        kind="radar",
        title=f"{group_title(group_id)} vs Global",
        labels=[label_bucket(key) for key in SCORE_ORDER],
        datasets=[
            Dataset(
                label="Global",
                data=[global_values.get(key, 0) for key in SCORE_ORDER],
                color="rgba(54, 162, 235, 0.3)",
            ),
            Dataset(
                label=group_title(group_id),
                data=[group_values.get(key, 0) for key in SCORE_ORDER],
                color="rgba(255, 99, 132, 0.3)",
            ),
        ],
    )


def custom_group_ids(custom_data: Optional[dict]) -> list[str]:
    """Known groups first in their fixed order, then any extra ones."""
    if not custom_data:
        return []
    known = [g for g in GROUP_TITLES if g in custom_data]
    return known + sorted(g for g in custom_data if g not in GROUP_TITLES)
