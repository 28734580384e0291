import pandas as pd

import malaise_vs_pollard
from survey_compare import plots
from survey_compare.bootstrap import bootstrap_and_compare, samples_by
from survey_compare.richness import richness_statistic, species_frequency
from survey_compare.transform import to_long


# ---------------------------------------------------------------------------
# Figures & tables
# ---------------------------------------------------------------------------


def test_bootstrap_histograms_written(tmp_path, synthetic):
    survey, _, schema = synthetic
    result = bootstrap_and_compare(samples_by(survey), richness_statistic(schema), n_boot=20, seed=0)
    observed = dict(zip(result.summary["group"], result.summary["observed"]))
    path = plots.plot_bootstrap_histograms(result.distributions, tmp_path / "figs" / "hist.png", observed=observed)
    assert path.exists()
    assert path.stat().st_size > 0


def test_abundance_and_frequency_figures_written(tmp_path, synthetic):
    survey, traits, schema = synthetic
    assert plots.plot_abundance_by_size(to_long(survey, traits, schema), tmp_path / "scatter.png").exists()
    freq = species_frequency(survey, schema)
    assert plots.plot_species_frequency(freq, tmp_path / "freq.png", top=3).exists()


def test_write_table(tmp_path, survey):
    path = plots.write_table(survey, tmp_path / "tables" / "survey.csv")
    pd.testing.assert_frame_equal(pd.read_csv(path), survey)


# ---------------------------------------------------------------------------
# End-to-end analysis script
# ---------------------------------------------------------------------------


def _write_inputs(tmp_path, synthetic, crowd):
    survey, traits, _ = synthetic
    survey.to_csv(tmp_path / "survey.csv", index=False)
    traits.to_csv(tmp_path / "traits.csv", index=False)
    crowd = crowd.assign(species=["sp_0", "sp_1", "sp_9", "sp_1"])
    crowd.to_csv(tmp_path / "inat.csv", index=False)


def test_main_writes_outputs(tmp_path, synthetic, crowd):
    _write_inputs(tmp_path, synthetic, crowd)
    out = tmp_path / "out"
    status = malaise_vs_pollard.main([
        "--survey", str(tmp_path / "survey.csv"),
        "--traits", str(tmp_path / "traits.csv"),
        "--crowd", str(tmp_path / "inat.csv"),
        "--out-dir", str(out),
        "--n-boot", "20",
        "--seed", "1",
    ])
    assert status == 0
    for name in ["richness_bootstrap_summary.csv", "richness_bootstrap_tests.csv", "richness_by_site.csv",
                 "richness_bootstrap_by_site.csv", "species_frequency.csv", "mixed_model_method.csv",
                 "mixed_model_method_x_size.csv", "species_overlap.csv", "richness_bootstrap_hist.png",
                 "abundance_vs_size_scatter.png", "species_frequency_barchart.png"]:
        assert (out / name).exists(), name

    summary = pd.read_csv(out / "richness_bootstrap_summary.csv")
    assert summary["group"].tolist() == ["Malaise trap", "Pollard walk", "iNaturalist"]
    assert summary.loc[2, "observed"] == 3


def test_main_reports_missing_trait_as_failure(tmp_path, synthetic, crowd):
    _write_inputs(tmp_path, synthetic, crowd)
    traits = pd.read_csv(tmp_path / "traits.csv")
    traits.iloc[1:].to_csv(tmp_path / "traits.csv", index=False)
    status = malaise_vs_pollard.main([
        "--survey", str(tmp_path / "survey.csv"),
        "--traits", str(tmp_path / "traits.csv"),
        "--out-dir", str(tmp_path / "out"),
        "--n-boot", "5",
    ])
    assert status == 1


def test_main_missing_file(tmp_path):
    assert malaise_vs_pollard.main(["--survey", str(tmp_path / "nope.csv"),
                                    "--traits", str(tmp_path / "nope.csv")]) == 1


def test_config_file_with_flag_override(tmp_path, synthetic, crowd):
    _write_inputs(tmp_path, synthetic, crowd)
    (tmp_path / "config.json").write_text(
        '{"survey_path": "%s", "traits_path": "%s", "n_boot": 5000, "seed": 2}'
        % (tmp_path / "survey.csv", tmp_path / "traits.csv")
    )
    args = malaise_vs_pollard.parse_args(["--config", str(tmp_path / "config.json"), "--n-boot", "10"])
    config = malaise_vs_pollard.build_config(args)
    assert config.n_boot == 10
    assert config.seed == 2
    assert config.crowd_path is None


def test_main_rejects_single_bootstrap_iteration(tmp_path, synthetic, crowd):
    _write_inputs(tmp_path, synthetic, crowd)
    status = malaise_vs_pollard.main([
        "--survey", str(tmp_path / "survey.csv"),
        "--traits", str(tmp_path / "traits.csv"),
        "--out-dir", str(tmp_path / "out"),
        "--n-boot", "1",
    ])
    assert status == 1
    assert not (tmp_path / "out").exists()
