# provisioner/pipeline.py
# -*- coding: utf-8 -*-
"""
Sequential, fail-fast runner for provisioning stages.
"""

import logging
from enum import Enum
from typing import Any, Callable, Dict, List, Optional

from pydantic import BaseModel, Field

from provisioner.config_models import AppSettings


class StageStatus(str, Enum):
    APPLIED = "applied"
    # Finished, but part of the work was left to the operator (e.g. no firewall tool).
    DEGRADED = "degraded"


class StageOutcome(BaseModel):
    """What a stage did, returned by every stage function."""

    name: str
    status: StageStatus = StageStatus.APPLIED
    details: Dict[str, Any] = Field(default_factory=dict)
    warnings: List[str] = Field(default_factory=list)


StageFunction = Callable[[AppSettings, Optional[logging.Logger]], StageOutcome]


class Pipeline:
    """
    Runs an ordered list of stages against one AppSettings instance.

    The first stage that raises stops the run: its exception is logged and
    re-raised unchanged, and no later stage is called. Stages already applied
    are left as they are.
    """

    def __init__(
        self,
        app_settings: AppSettings,
        pipeline_logger: Optional[logging.Logger] = None,
    ):
        """
        Initializes the Pipeline.

        Args:
            app_settings: The settings passed to every stage.
            pipeline_logger: An optional logger instance.
        """
        self.app_settings = app_settings
        self.logger = pipeline_logger or logging.getLogger(__name__)
        self.stages: List[Dict[str, Any]] = []
        self.outcomes: List[StageOutcome] = []

    def add_stage(
        self, name: str, description: str, func: StageFunction
    ) -> None:
        """
        Appends a stage to the execution list.

        Args:
            name: Short identifier of the stage.
            description: Human-readable description used in logs.
            func: Called as func(app_settings, logger); returns a StageOutcome.
        """
        self.stages.append(
            {"name": name, "description": description, "func": func}
        )
        self.logger.debug(f"Stage '{name}' added to the pipeline.")

    @property
    def stage_names(self) -> List[str]:
        return [stage["name"] for stage in self.stages]

    def run(self) -> List[StageOutcome]:
        """
        Executes all stages in order.

        Returns:
            The outcome of every stage, in execution order.

        Raises:
            Exception: Whatever the first failing stage raised.
        """
        symbols = self.app_settings.symbols
        total = len(self.stages)
        self.outcomes = []
        self.logger.info("Provisioning started.")

        for index, stage in enumerate(self.stages, start=1):
            stage_name = stage["name"]
            self.logger.info(
                f"--- {symbols.get('step', '➡️')} Stage {index}/{total}: {stage['description']} ({stage_name}) ---"
            )
            try:
                outcome = stage["func"](self.app_settings, self.logger)
            except Exception as e:
                self.logger.error(
                    f"{symbols.get('error', '❌')} FAILED: {stage['description']} ({stage_name}): {e}"
                )
                remaining = total - index
                if remaining:
                    self.logger.error(
                        f"Halting provisioning; {remaining} remaining stage(s) will not run."
                    )
                raise

            if outcome is None:
                outcome = StageOutcome(name=stage_name)
            self.outcomes.append(outcome)
            for warning in outcome.warnings:
                self.logger.debug(f"Stage '{stage_name}' warning: {warning}")
            self.logger.info(
                f"--- {symbols.get('success', '✅')} Completed: {stage['description']} ({stage_name}, {outcome.status.value}) ---"
            )

        self.logger.info(
            f"{symbols.get('sparkles', '✨')} Provisioning finished successfully."
        )
        return self.outcomes
