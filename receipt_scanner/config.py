"""
Scanner configuration, with overrides from the environment / .env file
"""

import os
from dataclasses import dataclass
from typing import Optional

from dotenv import find_dotenv, load_dotenv

ENV_PREFIX = "RECEIPT_SCANNER_"


@dataclass(frozen=True)
class ScannerConfig:
    """
    Tunable parameters of the scan pipeline.

    Attributes:
        working_height: Height of the downscaled copy used for detection
        blur_kernel: Odd Gaussian kernel size applied before Canny
        canny_low: Canny continuation threshold
        canny_high: Canny seeding threshold
        epsilon_ratio: Polygon approximation tolerance as ratio of perimeter
        min_area_ratio: Minimum receipt area as ratio of the working frame
        border_value: Fill value for pixels sampled outside the source
        timeout: Default time budget in seconds (None = unlimited)
    """

    working_height: int = 800
    blur_kernel: int = 5
    canny_low: int = 50
    canny_high: int = 150
    epsilon_ratio: float = 0.02
    min_area_ratio: float = 0.0015
    border_value: int = 0
    timeout: Optional[float] = None

    def validate(self) -> "ScannerConfig":
        if self.working_height < 1:
            raise ValueError(f"working_height must be positive, got {self.working_height}")
        if self.blur_kernel < 1 or self.blur_kernel % 2 == 0:
            raise ValueError(f"blur_kernel must be a positive odd number, got {self.blur_kernel}")
        if self.canny_low >= self.canny_high:
            raise ValueError(f"canny_low ({self.canny_low}) must be below canny_high ({self.canny_high})")
        if not 0 < self.epsilon_ratio < 1:
            raise ValueError(f"epsilon_ratio must be in (0, 1), got {self.epsilon_ratio}")
        if not 0 <= self.min_area_ratio < 1:
            raise ValueError(f"min_area_ratio must be in [0, 1), got {self.min_area_ratio}")
        if self.timeout is not None and self.timeout <= 0:
            raise ValueError(f"timeout must be positive, got {self.timeout}")
        return self

    @classmethod
    def from_env(cls) -> "ScannerConfig":
        """
        Build a configuration from RECEIPT_SCANNER_* variables.

        Values from a .env file in the working directory are loaded first
        without overriding the environment; unset variables keep their
        defaults.
        """
        load_dotenv(find_dotenv(usecwd=True))

        def read(name, cast, default):
            value = os.getenv(ENV_PREFIX + name)
            if value is None or value == "":
                return default
            try:
                return cast(value)
            except ValueError as e:
                raise ValueError(f"Invalid {ENV_PREFIX}{name}={value!r}") from e

        defaults = cls()
        return cls(
            working_height=read("WORKING_HEIGHT", int, defaults.working_height),
            blur_kernel=read("BLUR_KERNEL", int, defaults.blur_kernel),
            canny_low=read("CANNY_LOW", int, defaults.canny_low),
            canny_high=read("CANNY_HIGH", int, defaults.canny_high),
            epsilon_ratio=read("EPSILON_RATIO", float, defaults.epsilon_ratio),
            min_area_ratio=read("MIN_AREA_RATIO", float, defaults.min_area_ratio),
            border_value=read("BORDER_VALUE", int, defaults.border_value),
            timeout=read("TIMEOUT", float, defaults.timeout),
        ).validate()
