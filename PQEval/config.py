"""
Configuration management for PQEval package.
"""

from dataclasses import dataclass
from typing import Dict, Optional
import yaml

from .calc.evaluators import EvaluatorType
from .calc.radii import RADII_TABLES

@dataclass
class PQEvalConfig:
    """Central configuration class for PQEval package."""

    # Evaluator settings
    evaluator_type: str = "optimized"
    use_full_sum: bool = True
    fixed_site_index: bool = True
    ncpu: int = 1

    # Radii settings
    radii_table: str = "covalent"
    custom_radii: Dict[str, float] = None

    # Report settings
    top: int = 10

    def __post_init__(self):
        """Set default values for mutable fields."""
        if self.custom_radii is None:
            self.custom_radii = {}

    @classmethod
    def from_yaml(cls, config_file: str) -> 'PQEvalConfig':
        """Load configuration from YAML file."""
        with open(config_file, 'r') as f:
            data = yaml.safe_load(f) or {}

        return cls.from_dict(data)

    @classmethod
    def from_dict(cls, data: dict) -> 'PQEvalConfig':
        """Build configuration from the nested YAML layout."""
        config_args = {}

        if 'evaluator' in data:
            evaluator = data['evaluator']
            config_args.update({
                'evaluator_type': evaluator.get('type', 'optimized'),
                'use_full_sum': evaluator.get('use_full_sum', True),
                'fixed_site_index': evaluator.get('fixed_site_index', True),
                'ncpu': evaluator.get('ncpu', 1),
            })

        if 'radii' in data:
            radii = data['radii']
            config_args.update({
                'radii_table': radii.get('table', 'covalent'),
                'custom_radii': radii.get('custom'),
            })

        if 'report' in data:
            config_args['top'] = data['report'].get('top', 10)

        return cls(**config_args)

    def to_dict(self) -> dict:
        return {
            'evaluator': {
                'type': self.evaluator_type,
                'use_full_sum': self.use_full_sum,
                'fixed_site_index': self.fixed_site_index,
                'ncpu': self.ncpu,
            },
            'radii': {
                'table': self.radii_table,
                'custom': dict(self.custom_radii),
            },
            'report': {
                'top': self.top,
            },
        }

    def to_yaml(self, config_file: str):
        """Save configuration to YAML file."""
        with open(config_file, 'w') as f:
            yaml.dump(self.to_dict(), f, default_flow_style=False, indent=2)

    def validate(self) -> bool:
        """Validate configuration parameters."""
        errors = []

        if self.evaluator_type.upper() not in ('BASIC', 'OPTIMIZED'):
            valid = [t.name.lower() for t in EvaluatorType if t is not EvaluatorType.NONE]
            errors.append(f"Evaluator type must be one of {valid}, "
                          f"got {self.evaluator_type!r}")

        if self.ncpu < 1:
            errors.append("Number of CPUs must be at least 1")

        if self.radii_table.lower() not in RADII_TABLES:
            errors.append(f"Unknown radii table {self.radii_table!r}, "
                          f"available: {sorted(RADII_TABLES)}")

        for symbol, radius in self.custom_radii.items():
            if radius < 0:
                errors.append(f"Radius of {symbol} must be non-negative")

        if self.top < 0:
            errors.append("Report size must be non-negative")

        if errors:
            print("Configuration validation errors:")
            for error in errors:
                print(f"  - {error}")
            return False

        return True

def load_config(config_file: Optional[str] = None) -> PQEvalConfig:
    """Load and validate PQEval configuration, defaults without a file."""
    config = PQEvalConfig.from_yaml(config_file) if config_file else PQEvalConfig()

    if not config.validate():
        raise ValueError("Configuration validation failed")

    return config
