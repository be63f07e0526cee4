"""Command line configuration for the struct query tool."""

import os
from dataclasses import dataclass
from pathlib import Path
from typing import Optional

from .query_config import get_config


@dataclass
class Config:
    """Configuration for a struct query run."""

    schema_path: Path
    memory_image: Optional[Path] = None
    image_base: int = 0
    elf_path: Optional[Path] = None
    verbose: bool = False
    log_dir: Path = Path("logs")

    @classmethod
    def from_env(cls, env_path: Optional[Path] = None) -> "Config":
        """
        Load configuration from environment variables or .env file.

        Args:
            env_path: Optional path to .env file (defaults to .env in current directory)

        Returns:
            Config object
        """
        if env_path is None:
            env_path = Path.cwd() / ".env"

        if env_path.exists():
            try:
                from dotenv import load_dotenv

                load_dotenv(env_path)
            except ImportError:
                # dotenv not available, will use environment variables only
                pass

        schema_path = Path(os.getenv("SCHEMA_PATH", "schema.json"))
        image_str = os.getenv("MEMORY_IMAGE")
        elf_str = os.getenv("ELF_PATH")
        verbose = os.getenv("VERBOSE", "false").lower() in ("true", "1", "yes")

        try:
            image_base = int(os.getenv("IMAGE_BASE", "0"), 0)
        except ValueError:
            image_base = 0

        return cls(
            schema_path=schema_path,
            memory_image=Path(image_str) if image_str else None,
            image_base=image_base,
            elf_path=Path(elf_str) if elf_str else None,
            verbose=verbose,
            log_dir=Path(get_config()["LOG_DIR"]),
        )

    @classmethod
    def from_args(
        cls,
        schema_path: Optional[Path] = None,
        memory_image: Optional[Path] = None,
        image_base: Optional[int] = None,
        elf_path: Optional[Path] = None,
        verbose: Optional[bool] = None,
    ) -> "Config":
        """
        Create configuration from explicit arguments, falling back to environment.

        Returns:
            Config object
        """
        config = cls.from_env()

        if schema_path is not None:
            config.schema_path = schema_path
        if memory_image is not None:
            config.memory_image = memory_image
        if image_base is not None:
            config.image_base = image_base
        if elf_path is not None:
            config.elf_path = elf_path
        if verbose is not None:
            config.verbose = verbose

        return config

    def validate(self) -> None:
        """
        Validate the configuration.

        Raises:
            ValueError: If configuration is invalid
        """
        if not self.schema_path.is_file():
            raise ValueError(f"Schema document not found: {self.schema_path}")

        if self.memory_image is not None and not self.memory_image.is_file():
            raise ValueError(f"Memory image not found: {self.memory_image}")

        if self.elf_path is not None and not self.elf_path.is_file():
            raise ValueError(f"ELF file not found: {self.elf_path}")

        if self.image_base < 0:
            raise ValueError(f"Image base must not be negative: {self.image_base:#x}")
