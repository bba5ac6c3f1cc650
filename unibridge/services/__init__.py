"""
Services module - the AI decision core.

build_services() wires everything once per process from Settings.
"""
from dataclasses import dataclass, field
from typing import Optional

from unibridge.core.config import Settings
from unibridge.services.deepseek_client import build_deepseek_client
from unibridge.services.matching_service import RankingEngine, build_ranking_engine
from unibridge.services.opportunity_service import OpportunityCatalog
from unibridge.services.wellness_service import RiskTriageClassifier
from unibridge.utils.timeouts import ProviderCallRunner


@dataclass(frozen=True)
class Services:
    ranking_engine: RankingEngine
    triage_classifier: RiskTriageClassifier
    catalog: OpportunityCatalog
    provider_configured: bool
    runner: Optional[ProviderCallRunner] = field(default=None)

    def shutdown(self) -> None:
        if self.runner is not None:
            self.runner.shutdown()


def build_services(settings: Settings) -> Services:
    client = build_deepseek_client(settings)
    # Ranking and check-in share one worker pool
    runner = ProviderCallRunner(settings.ai_max_concurrent_calls)
    return Services(
        ranking_engine=build_ranking_engine(client, settings.ai_timeout_seconds, runner),
        triage_classifier=RiskTriageClassifier(client, settings.ai_timeout_seconds, runner),
        catalog=OpportunityCatalog(settings),
        provider_configured=client is not None,
        runner=runner
    )
