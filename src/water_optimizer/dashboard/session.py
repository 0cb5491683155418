"""
Dashboard session state.

DashboardState is an immutable snapshot; every change produces a new
snapshot with the prediction re-derived from the inputs. DashboardSession
owns the current snapshot, the synthetic dataset and the two scheduled
jobs (training and the debounced advice fetch).
"""

import asyncio
import dataclasses
import logging
from dataclasses import dataclass
from typing import Awaitable, Callable, List, Optional

from .. import config
from ..advice import fetch_conservation_advice
from ..model import (
    PredictionResult,
    TrainingResult,
    TrainingStatus,
    UserInputs,
    WaterSample,
    generate_synthetic_data,
    predict_usage,
    train_model,
)
from .scheduler import Debouncer

logger = logging.getLogger(__name__)

AdviceFetcher = Callable[[int, UserInputs], Awaitable[str]]


@dataclass(frozen=True)
class DashboardState:
    inputs: UserInputs
    prediction: PredictionResult
    status: TrainingStatus = TrainingStatus.IDLE
    training: Optional[TrainingResult] = None
    advice: str = ""
    advice_loading: bool = False

    @property
    def is_training(self) -> bool:
        return self.status is TrainingStatus.TRAINING

    @property
    def metrics(self):
        return self.training.metrics if self.training else None

    @property
    def importance(self):
        return self.training.importance if self.training else ()


def initial_state(inputs: Optional[UserInputs] = None) -> DashboardState:
    inputs = inputs or UserInputs()
    return DashboardState(inputs=inputs, prediction=predict_usage(inputs))


def update_inputs(state: DashboardState, **changes) -> DashboardState:
    """New state with ``changes`` applied to the inputs and the prediction re-derived."""
    inputs = state.inputs.replace(**changes)
    return dataclasses.replace(state, inputs=inputs, prediction=predict_usage(inputs))


class DashboardSession:
    """
    Owner of the dashboard's single source of truth.

    Methods that schedule work (``load``, ``train``, ``set_inputs``,
    ``refresh_advice``) must be called from a running event loop.

    Parameters
    ----------
    inputs : UserInputs, optional
        Starting inputs; defaults to ``UserInputs()``
    advice_fetcher : coroutine function, optional
        ``(prediction, inputs) -> str``; defaults to the Gemini fetcher
    training_delay, advice_delay : float
        Simulated training time and advice debounce, in seconds
    auto_advice : bool
        Whether input changes schedule a debounced advice refresh
    """

    def __init__(self,
                 inputs: Optional[UserInputs] = None,
                 advice_fetcher: Optional[AdviceFetcher] = None,
                 training_delay: float = config.TRAINING_DELAY_SECONDS,
                 advice_delay: float = config.ADVICE_DEBOUNCE_SECONDS,
                 auto_advice: bool = True):
        self.state = initial_state(inputs)
        self.samples: List[WaterSample] = []
        self.training_delay = training_delay
        self.auto_advice = auto_advice
        self.advice_fetcher = advice_fetcher or fetch_conservation_advice
        self._listeners: List[Callable[[DashboardState], None]] = []
        self._training_task: Optional[asyncio.Task] = None
        self._advice = Debouncer(advice_delay, callback=self._on_advice, name="advice")

    def subscribe(self, callback: Callable[[DashboardState], None]) -> None:
        self._listeners.append(callback)

    def _set_state(self, state: DashboardState) -> None:
        self.state = state
        for callback in self._listeners:
            callback(state)

    # ---------- training ----------

    def load(self, count: int = config.DEFAULT_SAMPLE_COUNT, rng=None) -> asyncio.Task:
        """
        Generate the synthetic dataset and start the initial training run.

        With ``auto_advice`` the first advice fetch is scheduled as well,
        debounced like any input change.
        """
        self.samples = generate_synthetic_data(count, rng)
        task = self.train()
        if self.auto_advice:
            self._advice.trigger(self._advice_job(self.state))
        return task

    def train(self) -> asyncio.Task:
        """
        Start a training run on the current dataset.

        While a run is in flight further triggers are ignored and the
        in-flight task is returned.
        """
        if self.state.is_training:
            logger.warning("Training already in progress; ignoring trigger")
            return self._training_task

        self._set_state(dataclasses.replace(self.state, status=TrainingStatus.TRAINING))
        self._training_task = asyncio.get_running_loop().create_task(self._train())
        return self._training_task

    async def _train(self) -> TrainingResult:
        try:
            result = await train_model(self.samples, delay=self.training_delay)
        except (Exception, asyncio.CancelledError):
            fallback = TrainingStatus.READY if self.state.training else TrainingStatus.IDLE
            logger.warning("Training run did not complete; status back to %s", fallback.value)
            self._set_state(dataclasses.replace(self.state, status=fallback))
            raise
        self._set_state(dataclasses.replace(
            self.state, status=TrainingStatus.READY, training=result
        ))
        return result

    # ---------- inputs & advice ----------

    def set_inputs(self, **changes) -> DashboardState:
        """Apply input changes and schedule a debounced advice refresh."""
        self._set_state(update_inputs(self.state, **changes))
        if self.auto_advice:
            self._advice.trigger(self._advice_job(self.state))
        return self.state

    def refresh_advice(self) -> asyncio.Task:
        """Fetch advice now, dropping any pending debounced fetch."""
        return self._advice.flush(self._advice_job(self.state))

    def cancel_advice(self) -> bool:
        """Drop any pending or in-flight advice fetch. Returns True if one was cancelled."""
        return self._advice.cancel()

    @property
    def advice_pending(self) -> bool:
        return self._advice.pending

    def _advice_job(self, snapshot: DashboardState):
        async def job():
            self._set_state(dataclasses.replace(self.state, advice_loading=True))
            try:
                return await self.advice_fetcher(snapshot.prediction.prediction, snapshot.inputs)
            except asyncio.CancelledError:
                self._set_state(dataclasses.replace(self.state, advice_loading=False))
                raise
            except Exception:
                logger.exception("Advice fetch failed")
                return config.ADVICE_ERROR_TEXT
        return job

    def _on_advice(self, advice: str) -> None:
        self._set_state(dataclasses.replace(self.state, advice=advice, advice_loading=False))
