from omegaconf import DictConfig, OmegaConf

from ..dissolution import dissolution_coefs
from .logging import log_call


@log_call
def validate_config(cfg: DictConfig) -> None:
    """Simple validation for simulation configs."""

    if cfg.population.n_nodes <= 0:
        raise ValueError("n_nodes must be positive")
    if cfg.population.groups not in (1, 2):
        raise ValueError("groups must be 1 or 2")
    if cfg.population.a_rate < 0:
        raise ValueError("a_rate must be non-negative")
    if cfg.control.nsteps < 1:
        raise ValueError("nsteps must be at least 1")
    if cfg.control.nsims < 1:
        raise ValueError("nsims must be at least 1")
    duration = cfg.dissolution.duration
    if OmegaConf.is_list(duration):
        duration = OmegaConf.to_container(duration)
    # Raises a CalibrationError (a ValueError) on bad dissolution settings
    dissolution_coefs(
        cfg.dissolution.formula,
        duration,
        cfg.dissolution.d_rate,
        levels=cfg.dissolution.get("levels"),
    )
