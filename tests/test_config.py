"""
Tests of configuration handling and the command-line interface.
"""

import pytest
import yaml
from ase.io import write
from typer.testing import CliRunner

from PQEval.calc.evaluators import EvaluatorFlag, EvaluatorType
from PQEval.calc.overlap import make_overlap_calculator
from PQEval.calc.radii import CovalentRadiiTable
from PQEval.cli import app, parse_radii
from PQEval.config import PQEvalConfig, load_config

class TestConfig:
    """Test YAML configuration."""

    def test_defaults(self):
        """Test the default configuration."""
        config = PQEvalConfig()
        assert config.evaluator_type == "optimized"
        assert config.use_full_sum
        assert config.fixed_site_index
        assert config.ncpu == 1
        assert config.radii_table == "covalent"
        assert config.custom_radii == {}
        assert config.validate()

    def test_yaml_round_trip(self, tmp_path):
        """Test saving and loading a configuration."""
        config = PQEvalConfig(evaluator_type="basic", use_full_sum=False,
                              ncpu=3, custom_radii={'Na': 1.1}, top=4)
        config_file = tmp_path / "config.yml"
        config.to_yaml(str(config_file))

        loaded = PQEvalConfig.from_yaml(str(config_file))
        assert loaded == config
        with open(config_file) as f:
            data = yaml.safe_load(f)
        assert data['evaluator']['type'] == "basic"
        assert data['radii']['custom'] == {'Na': 1.1}

    def test_partial_yaml(self, tmp_path):
        """Test that missing sections keep their defaults."""
        config_file = tmp_path / "config.yml"
        config_file.write_text("radii:\n  table: zero\n")
        config = load_config(str(config_file))
        assert config.radii_table == "zero"
        assert config.evaluator_type == "optimized"
        assert config.top == 10

    @pytest.mark.parametrize("changes", [
        {'evaluator_type': "none"},
        {'ncpu': 0},
        {'radii_table': "vdw"},
        {'custom_radii': {'Na': -1.0}},
        {'top': -1},
    ])
    def test_validation(self, changes, capsys):
        """Test rejection of invalid settings."""
        config = PQEvalConfig(**changes)
        assert not config.validate()
        assert "Configuration validation errors" in capsys.readouterr().out

    def test_load_invalid_config(self, tmp_path):
        """Test that load_config raises for an invalid file."""
        config_file = tmp_path / "config.yml"
        config_file.write_text("evaluator:\n  ncpu: 0\n")
        with pytest.raises(ValueError):
            load_config(str(config_file))

    def test_make_overlap_calculator(self):
        """Test calculator setup from a configuration."""
        config = PQEvalConfig(evaluator_type="basic", use_full_sum=False,
                              fixed_site_index=False, custom_radii={'Na': 1.1})
        calc = make_overlap_calculator(config)
        assert calc.get_evaluator_type() is EvaluatorType.BASIC
        assert not calc.get_evaluator_flag(EvaluatorFlag.USEFULLSUM)
        assert not calc.get_evaluator_flag(EvaluatorFlag.FIXEDSITEINDEX)
        assert isinstance(calc.radii_table, CovalentRadiiTable)
        assert calc.radii_table.lookup('Na') == 1.1

class TestCLI:
    """Test the pqeval command."""

    @pytest.fixture
    def runner(self):
        return CliRunner()

    @pytest.fixture
    def structure_file(self, tmp_path, ion_cluster):
        path = tmp_path / "cluster.xyz"
        write(str(path), ion_cluster)
        return path

    def test_parse_radii(self):
        """Test parsing of SYMBOL=RADIUS items."""
        assert parse_radii(["Na=1.0", " Cl = 0.8"]) == {'Na': 1.0, 'Cl': 0.8}
        with pytest.raises(ValueError):
            parse_radii(["Na"])

    def test_init(self, runner, tmp_path):
        """Test creating a configuration file."""
        config_file = tmp_path / "config.yml"
        result = runner.invoke(app, ["init", "--config", str(config_file)])
        assert result.exit_code == 0
        assert config_file.exists()
        assert load_config(str(config_file)) == PQEvalConfig()

        result = runner.invoke(app, ["init", "--config", str(config_file)])
        assert result.exit_code == 1
        assert "already exists" in result.output

    def test_overlap(self, runner, structure_file):
        """Test overlap evaluation of a structure file."""
        result = runner.invoke(app, [
            "overlap", str(structure_file),
            "--radius", "Na=1.0", "--radius", "Cl=0.8",
            "--ncpu", "2", "--top", "3",
        ])
        assert result.exit_code == 0, result.output
        assert "Sites: 12" in result.output
        assert "Cutoff used: 2 Å" in result.output
        assert "symbol0" in result.output

    def test_overlap_with_config(self, runner, tmp_path, structure_file):
        """Test overlap evaluation with a configuration file."""
        config_file = tmp_path / "config.yml"
        PQEvalConfig(radii_table="zero").to_yaml(str(config_file))
        result = runner.invoke(app, ["overlap", str(structure_file),
                                     "--config", str(config_file)])
        assert result.exit_code == 0, result.output
        assert "Overlapping pairs: 0" in result.output

    def test_overlap_missing_file(self, runner, tmp_path):
        """Test the error for a missing structure file."""
        result = runner.invoke(app, ["overlap", str(tmp_path / "missing.xyz")])
        assert result.exit_code == 1
        assert "not found" in result.output

    def test_overlap_bad_radius(self, runner, structure_file):
        """Test the error for a malformed radius option."""
        result = runner.invoke(app, ["overlap", str(structure_file),
                                     "--radius", "Na"])
        assert result.exit_code == 1
        assert "Error evaluating overlaps" in result.output
