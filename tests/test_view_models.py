"""Tests for chart and table view-models."""

from burnout_survey import view_models as vm

from conftest import CUSTOM_STATS, DETAILED_STATS, GLOBAL_STATS, TABLE_STATS


def test_buckets_sort_by_fixed_rank_and_get_labels():
    rows = vm.sort_buckets(GLOBAL_STATS["global"])

    assert [row["score"] for row in rows] == ["score 0-26", "score 36-40", "score > 41"]
    assert [vm.label_bucket(row["score"]) for row in rows] == ["Trés Faible", "Élevé", "Trés Élevé"]


def test_unknown_buckets_sort_last_in_arrival_order():
    keys = ["score 99", "score 31-35", "score ??", "score 0-26"]

    assert vm.sort_buckets(keys) == ["score 0-26", "score 31-35", "score 99", "score ??"]
    assert vm.label_bucket("score 99") == "score 99"


def test_score_legend_follows_bucket_order():
    assert vm.score_legend()[0] == ("Trés Faible", "score 0-26")
    assert vm.score_legend()[-1] == ("Trés Élevé", "score > 41")


def test_demographic_charts_skip_missing_breakdowns():
    charts = vm.demographic_charts(DETAILED_STATS)

    assert [c.kind for c in charts] == ["pie", "pie", "pie", "bar", "bar", "bar"]
    sex = charts[0]
    assert sex.labels == ["Homme", "Femme"]
    assert sex.datasets[0].data == [40, 60]
    assert vm.demographic_charts({"demographics": {"bySex": {"Homme": 100}}})[0].title == "Distribution par Sexe"


def test_grouped_bar_fills_missing_categories_with_zero():
    chart = vm.grouped_bar_chart("t", {"Homme": {"Marié": 20, "Célibataire": 15}, "Femme": {"Marié": 30}})

    assert chart.labels == ["Marié", "Célibataire"]
    assert [d.data for d in chart.datasets] == [[20, 15], [30, 0]]


def test_question_charts_are_horizontal_and_skip_empty_breakdowns():
    charts = vm.question_charts(DETAILED_STATS["questions"][0])

    assert [c.title for c in charts] == ["Distribution par Sexe", "Distribution par Service"]
    assert {c.kind for c in charts} == {"horizontal-bar"}


def test_table_sections_keep_fixed_order_and_raw_values():
    sections = vm.table_sections(TABLE_STATS)

    assert [s.title for s in sections][:2] == ["Genre", "Âge"]
    assert len(sections) == len(vm.TABLE_SECTIONS)
    assert sections[0].rows[0] == vm.TableRow(type="Homme", effectif=17, percentage=40)
    assert sections[2].rows == []


def test_category_score_chart_shares_one_bucket_axis():
    chart = vm.category_score_chart(GLOBAL_STATS["genders"], "Scores par Genre")

    assert chart.labels == ["Trés Faible", "Moyen"]
    assert [d.label for d in chart.datasets] == ["Homme", "Femme"]
    assert chart.datasets[1].data == [50, 0]


def test_custom_group_chart_and_group_order():
    assert vm.custom_group_ids(CUSTOM_STATS) == ["group1", "group2"]
    assert vm.custom_group_ids({"group9": [], "group3": []}) == ["group3", "group9"]
    assert vm.custom_group_ids(None) == []

    chart = vm.custom_group_chart(CUSTOM_STATS, "group2")
    assert chart.title == "Perturbation cognitive"
    assert chart.labels == ["Trés Faible", "Faible"]
    assert chart.datasets[0].data == [85, 15]


def test_radar_puts_every_bucket_on_the_axis():
    chart = vm.radar_chart(GLOBAL_STATS, CUSTOM_STATS, "group1")

    assert chart.kind == "radar"
    assert chart.title == "Perturbation psychosomatique vs Global"
    assert chart.labels == [vm.SCORE_LABELS[key] for key in vm.SCORE_ORDER]
    global_set, group_set = chart.datasets
    assert global_set.data == [40, 0, 0, 20, 10]
    assert group_set.data == [60, 0, 0, 0, 0]


def test_chart_to_json_is_template_ready():
    data = vm.global_score_chart(GLOBAL_STATS).to_json()

    assert data["kind"] == "bar"
    assert data["percent"] is True
    assert data["datasets"][0]["data"] == [40, 20, 10]
