import numpy as np
import pandas as pd
import pytest

from mushroom_toxicity.report import ReportWriter, df_to_markdown, label_proportions


def test_df_to_markdown_formats_floats_and_counts_warnings():
    summary = pd.DataFrame(
        {
            "config_id": [4, 7],
            "mean": [0.987654321, np.nan],
            "warnings": [["lbfgs failed to converge", "max_iter reached"], []],
        }
    )
    table = df_to_markdown(summary)
    lines = table.splitlines()

    assert "config_id" in lines[0] and "warnings" in lines[0]
    assert set(lines[1]) <= set("|:- ")
    assert "0.9877" in lines[2]
    assert "lbfgs" not in table
    assert lines[2].rstrip(" |").endswith("2")
    # input frame untouched
    assert summary.loc[0, "warnings"] == ["lbfgs failed to converge", "max_iter reached"]


def test_df_to_markdown_keeps_the_index_when_asked():
    proportions = pd.DataFrame({"train": [0.5, 0.5], "test": [0.52, 0.48]}, index=["e", "p"])
    table = df_to_markdown(proportions, index=True)
    body = table.splitlines()[2:]
    assert body[0].lstrip("| ").startswith("e")
    assert body[1].lstrip("| ").startswith("p")


def test_label_proportions_sum_to_one(mushrooms):
    shares = label_proportions(mushrooms, "class")
    assert list(shares.index) == ["e", "p"]
    assert shares.sum() == pytest.approx(1.0)


def test_attribute_proportions_figure_is_saved(tmp_path, mushrooms):
    writer = ReportWriter(str(tmp_path / "report"))
    path = writer.plot_attribute_proportions(mushrooms[["class", "odor", "cap_shape"]], "class")
    assert (tmp_path / "report" / "attribute_proportions.png").exists()
    assert path.endswith("attribute_proportions.png")
