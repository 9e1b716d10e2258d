from omegaconf import OmegaConf


def _base_config() -> dict:
    return {
        "population": {
            "n_nodes": 100,
            "groups": 1,
            "random_seed": 1,
            "formation": "~edges",
            "a_rate": 0.0,
        },
        "dissolution": {
            "formula": "~offset(edges)",
            "duration": [10],
            "d_rate": 0.0,
            "levels": None,
        },
        "control": {
            "nsteps": 10,
            "nsims": 1,
            "epi_by": None,
            "attr_rules": {},
        },
    }


def make_invalid_config() -> OmegaConf:
    """Return a config with invalid population size."""

    cfg = _base_config()
    cfg["population"]["n_nodes"] = -1
    return OmegaConf.create(cfg)


def make_infeasible_config() -> OmegaConf:
    """Return a config whose departure rate outpaces the durations."""

    cfg = _base_config()
    cfg["dissolution"]["duration"] = [2]
    cfg["dissolution"]["d_rate"] = 0.5
    return OmegaConf.create(cfg)
