"""
Tests for CLI configuration files.

Validates that:
1. YAML and JSON files load; bad files raise clear errors
2. Validation rejects unknown keys and invalid values
3. Merging follows: explicit CLI flag > config value > CLI default
"""

import argparse
import json
from pathlib import Path

import pytest

from tsnorm.cli import normalize
from tsnorm.cli.config import load_config, merge_config_with_args, validate_config
from tsnorm.core.exceptions import InvalidConfigurationError


@pytest.fixture
def parser():
    parser = argparse.ArgumentParser(prog="tsnorm")
    subparsers = parser.add_subparsers(dest="command")
    normalize.register_parser(subparsers)
    return parser


class TestLoadConfig:
    def test_yaml(self, tmp_path):
        path = tmp_path / "c.yaml"
        path.write_text("norm_function: zscore\nfilter_options: [0.5, 0.9]\n")
        assert load_config(path) == {'norm_function': 'zscore', 'filter_options': [0.5, 0.9]}

    def test_json(self, tmp_path):
        path = tmp_path / "c.json"
        path.write_text(json.dumps({'class_var_filter': True}))
        assert load_config(path) == {'class_var_filter': True}

    def test_empty_yaml(self, tmp_path):
        path = tmp_path / "c.yml"
        path.write_text("")
        assert load_config(path) == {}

    def test_missing(self, tmp_path):
        with pytest.raises(FileNotFoundError):
            load_config(tmp_path / "nope.yaml")

    def test_unsupported_suffix(self, tmp_path):
        path = tmp_path / "c.toml"
        path.write_text("a = 1")
        with pytest.raises(ValueError, match="Unsupported config format"):
            load_config(path)

    def test_invalid_yaml(self, tmp_path):
        path = tmp_path / "c.yaml"
        path.write_text("norm_function: [unclosed\n")
        with pytest.raises(ValueError, match="Invalid YAML"):
            load_config(path)

    def test_top_level_must_be_mapping(self, tmp_path):
        path = tmp_path / "c.yaml"
        path.write_text("- a\n- b\n")
        with pytest.raises(ValueError, match="mapping"):
            load_config(path)


class TestValidateConfig:
    def test_valid(self):
        validate_config({
            'input': 'HCTSA.mat',
            'norm_function': 'scaledRobustSigmoid',
            'filter_options': [0.7, 1.0],
            'class_var_filter': False,
            'subset': {'rows': [0, 1], 'columns': None},
        })

    @pytest.mark.parametrize("config, match", [
        ({'normfunction': 'zscore'}, "Unknown config keys"),
        ({'norm_function': 'notAMethod'}, "Unknown normalization method"),
        ({'norm_function': ['zscore', 'maxmin']}, "must be a name"),
        ({'filter_options': [0.7, 1.5]}, "unit interval"),
        ({'filter_options': 0.7}, "list"),
        ({'filter_options': [0.7]}, "pair"),
        ({'class_var_filter': 'yes'}, "true or false"),
        ({'subset': [1, 2]}, "mapping"),
        ({'subset': {'rows': [0, -1]}}, "non-negative"),
        ({'subset': {'cols': [0]}}, "Unknown subset keys"),
    ])
    def test_invalid(self, config, match):
        with pytest.raises(InvalidConfigurationError, match=match):
            validate_config(config)


class TestMergeConfig:
    def test_config_beats_defaults(self, parser):
        args = parser.parse_args(["normalize"])
        config = {
            'input': 'data/run.mat',
            'norm_function': 'zscore',
            'filter_options': [0.5, 0.9],
            'class_var_filter': True,
            'subset': {'rows': [0, 2]},
            'export_csv': 'out/run',
        }

        merged = merge_config_with_args(config, args, [])

        assert merged.input == Path('data/run.mat')
        assert merged.norm_function == 'zscore'
        assert merged.filter_options == [0.5, 0.9]
        assert merged.class_var_filter is True
        assert merged.rows == [0, 2]
        assert merged.columns is None
        assert merged.export_csv == Path('out/run')

    def test_explicit_cli_beats_config(self, parser):
        cli_args = ["-i", "cli.mat", "--norm-function", "maxmin", "--rows", "1", "3"]
        args = parser.parse_args(["normalize"] + cli_args)
        config = {'input': 'config.mat', 'norm_function': 'zscore', 'subset': {'rows': [0]}}

        merged = merge_config_with_args(config, args, cli_args)

        assert merged.input == Path('cli.mat')
        assert merged.norm_function == 'maxmin'
        assert merged.rows == [1, 3]

    def test_original_namespace_untouched(self, parser):
        args = parser.parse_args(["normalize"])
        merge_config_with_args({'norm_function': 'zscore'}, args, [])
        assert args.norm_function == 'scaledRobustSigmoid'


class TestConfigErrorsFromCli:
    def test_list_valued_method_exits_1(self, tmp_path):
        from tsnorm.cli import main

        config = tmp_path / "normalize.yaml"
        config.write_text("norm_function: [zscore, maxmin]\n")

        assert main(["normalize", "--config", str(config)]) == 1
