"""
Localized report labels and fallback phrases.

Two static tables per language: section/field labels and fallback phrases
substituted for empty content fields. Every language must define exactly the
same keys as the default language; an unknown language code resolves to the
whole default table.
"""

import logging
from dataclasses import dataclass
from types import MappingProxyType
from typing import Dict, Mapping, Optional

logger = logging.getLogger(__name__)

DEFAULT_LANGUAGE = "en"


LABELS: Dict[str, Dict[str, str]] = {
    "en": {
        # Cover
        "report_title": "AI Opportunity Assessment",
        "report_subtitle": "Strategic analysis of AI implementation opportunities",
        "company_profile": "Company Profile",
        "prepared_on": "Prepared on",
        "analysis_id": "Analysis ID",
        "generated_with": "Generated with",
        "opportunities_identified": "Opportunities identified",
        # Executive summary
        "executive_summary": "Executive Summary",
        "summary_intro": (
            "This assessment identified {total} AI opportunities, {high_priority} of them "
            "rated high priority. {quick_wins} are quick wins (high impact, low effort) and "
            "{strategic_bets} are strategic bets (high impact, high effort)."
        ),
        "key_metrics": "Key Metrics",
        "total_opportunities": "Total opportunities",
        "high_priority": "High priority (7+)",
        "quick_wins": "Quick wins",
        "strategic_bets": "Strategic bets",
        "total_cost_savings": "Estimated cost savings",
        "total_revenue_increase": "Estimated revenue increase",
        "total_investment": "Estimated investment",
        "aggregate_roi": "Indicative ROI",
        "top_opportunities": "Top Opportunities",
        # Detailed analysis
        "detailed_analysis": "Detailed Opportunity Analysis",
        "opportunity_heading": "Opportunity {number}: {title}",
        "impact": "Impact",
        "effort": "Effort",
        "priority": "Priority",
        "level_High": "High",
        "level_Medium": "Medium",
        "level_Low": "Low",
        "business_case": "Business Case",
        "problem_statement": "Problem statement",
        "current_state": "Current state",
        "ai_solution": "AI solution",
        "success_metrics": "Success metrics",
        "implementation": "Implementation",
        "technical_requirements": "Technical requirements",
        "timeline": "Timeline",
        "team_size": "Team size",
        "estimated_budget": "Estimated budget",
        "skills": "Skills",
        "risk_assessment": "Risk assessment",
        "technical_risk": "Technical risk",
        "business_risk": "Business risk",
        "change_risk": "Change risk",
        "financial_projections": "Financial Projections",
        "cost_savings": "Cost savings",
        "revenue_increase": "Revenue increase",
        "investment_required": "Investment required",
        "roi_timeline": "ROI timeline",
        "conservative_scenario": "Conservative scenario",
        "optimistic_scenario": "Optimistic scenario",
        "strategic_recommendations": "Strategic Recommendations",
        "phase1": "Phase 1",
        "phase2": "Phase 2",
        "phase3": "Phase 3",
        "change_management": "Change management",
        "stakeholder_impact": "Stakeholder impact",
        "training_needs": "Training needs",
        "vendor_recommendations": "Vendor recommendations",
        "success_criteria": "Success criteria",
        # Strategic recommendations section
        "prioritization_matrix": "Prioritization Matrix",
        "matrix_legend": "Bars show relative level from low to high.",
        "implementation_sequencing": "Implementation Sequencing",
        "wave_quick_wins": "Wave 1: Quick wins",
        "wave_high_priority": "Wave 2: High-priority initiatives",
        "wave_remaining": "Wave 3: Longer-term initiatives",
        "change_management_narrative": "Change Management: {title}",
        # Financial section
        "roi_breakdown": "ROI Breakdown by Opportunity",
        "estimated_roi": "Estimated ROI",
        "portfolio_totals": "Portfolio Totals",
        "financial_disclaimer": (
            "Figures are extracted from free-text estimates and are indicative only."
        ),
        # Action plan
        "action_plan": "30/60/90-Day Action Plan",
        "action_plan_intro": "This plan is built around the top-priority opportunity: {title}.",
        "days_30": "First 30 days",
        "days_60": "Days 31 to 60",
        "days_90": "Days 61 to 90",
        # Footer
        "footer_generated": "Generated by AI Opportunity Scanner",
        "footer_confidential": "Prepared for internal planning purposes.",
        "page_label": "Page",
    },
    "fr": {
        "report_title": "Évaluation des opportunités IA",
        "report_subtitle": "Analyse stratégique des opportunités de mise en œuvre de l'IA",
        "company_profile": "Profil de l'entreprise",
        "prepared_on": "Préparé le",
        "analysis_id": "Identifiant d'analyse",
        "generated_with": "Généré avec",
        "opportunities_identified": "Opportunités identifiées",
        "executive_summary": "Synthèse",
        "summary_intro": (
            "Cette évaluation a identifié {total} opportunités IA, dont {high_priority} "
            "jugées prioritaires. {quick_wins} sont des gains rapides (impact élevé, effort "
            "faible) et {strategic_bets} sont des paris stratégiques (impact élevé, effort élevé)."
        ),
        "key_metrics": "Indicateurs clés",
        "total_opportunities": "Nombre d'opportunités",
        "high_priority": "Priorité élevée (7+)",
        "quick_wins": "Gains rapides",
        "strategic_bets": "Paris stratégiques",
        "total_cost_savings": "Économies estimées",
        "total_revenue_increase": "Hausse de revenus estimée",
        "total_investment": "Investissement estimé",
        "aggregate_roi": "ROI indicatif",
        "top_opportunities": "Principales opportunités",
        "detailed_analysis": "Analyse détaillée des opportunités",
        "opportunity_heading": "Opportunité {number} : {title}",
        "impact": "Impact",
        "effort": "Effort",
        "priority": "Priorité",
        "level_High": "Élevé",
        "level_Medium": "Moyen",
        "level_Low": "Faible",
        "business_case": "Analyse de rentabilité",
        "problem_statement": "Problématique",
        "current_state": "Situation actuelle",
        "ai_solution": "Solution IA",
        "success_metrics": "Indicateurs de succès",
        "implementation": "Mise en œuvre",
        "technical_requirements": "Exigences techniques",
        "timeline": "Calendrier",
        "team_size": "Taille de l'équipe",
        "estimated_budget": "Budget estimé",
        "skills": "Compétences",
        "risk_assessment": "Évaluation des risques",
        "technical_risk": "Risque technique",
        "business_risk": "Risque métier",
        "change_risk": "Risque lié au changement",
        "financial_projections": "Projections financières",
        "cost_savings": "Économies",
        "revenue_increase": "Hausse de revenus",
        "investment_required": "Investissement requis",
        "roi_timeline": "Délai de retour sur investissement",
        "conservative_scenario": "Scénario prudent",
        "optimistic_scenario": "Scénario optimiste",
        "strategic_recommendations": "Recommandations stratégiques",
        "phase1": "Phase 1",
        "phase2": "Phase 2",
        "phase3": "Phase 3",
        "change_management": "Conduite du changement",
        "stakeholder_impact": "Impact sur les parties prenantes",
        "training_needs": "Besoins de formation",
        "vendor_recommendations": "Fournisseurs recommandés",
        "success_criteria": "Critères de réussite",
        "prioritization_matrix": "Matrice de priorisation",
        "matrix_legend": "Les barres indiquent le niveau relatif, de faible à élevé.",
        "implementation_sequencing": "Séquencement de la mise en œuvre",
        "wave_quick_wins": "Vague 1 : gains rapides",
        "wave_high_priority": "Vague 2 : initiatives prioritaires",
        "wave_remaining": "Vague 3 : initiatives à plus long terme",
        "change_management_narrative": "Conduite du changement : {title}",
        "roi_breakdown": "ROI par opportunité",
        "estimated_roi": "ROI estimé",
        "portfolio_totals": "Totaux du portefeuille",
        "financial_disclaimer": (
            "Les montants sont extraits d'estimations en texte libre et restent indicatifs."
        ),
        "action_plan": "Plan d'action à 30/60/90 jours",
        "action_plan_intro": "Ce plan s'articule autour de l'opportunité la plus prioritaire : {title}.",
        "days_30": "30 premiers jours",
        "days_60": "Jours 31 à 60",
        "days_90": "Jours 61 à 90",
        "footer_generated": "Généré par AI Opportunity Scanner",
        "footer_confidential": "Document préparé à des fins de planification interne.",
        "page_label": "Page",
    },
}


FALLBACKS: Dict[str, Dict[str, str]] = {
    "en": {
        "not_specified": "Not specified",
        "tbd": "TBD",
        "assessment_needed": "Assessment needed",
        "phase1": "Days 1-30: Assess readiness, confirm scope and select a pilot team",
        "phase2": "Days 31-60: Run a controlled pilot and measure early results",
        "phase3": "Days 61-90: Scale the solution and embed it in daily operations",
        "stakeholder_impact": "Stakeholder impact to be assessed during planning",
        "training_needs": "Training needs to be defined with the implementation team",
        "success_criteria": "Success criteria to be defined",
        "scenario_conservative": "Conservative scenario to be modelled",
        "scenario_optimistic": "Optimistic scenario to be modelled",
        "no_items": "None listed",
    },
    "fr": {
        "not_specified": "Non précisé",
        "tbd": "À définir",
        "assessment_needed": "Évaluation nécessaire",
        "phase1": "Jours 1-30 : évaluer la maturité, valider le périmètre et constituer l'équipe pilote",
        "phase2": "Jours 31-60 : mener un pilote encadré et mesurer les premiers résultats",
        "phase3": "Jours 61-90 : déployer la solution et l'intégrer aux opérations",
        "stakeholder_impact": "Impact sur les parties prenantes à évaluer lors de la planification",
        "training_needs": "Besoins de formation à définir avec l'équipe projet",
        "success_criteria": "Critères de réussite à définir",
        "scenario_conservative": "Scénario prudent à modéliser",
        "scenario_optimistic": "Scénario optimiste à modéliser",
        "no_items": "Aucun élément",
    },
}


def _check_key_parity():
    """Every language must define exactly the default language's keys."""
    for name, tables in (("labels", LABELS), ("fallbacks", FALLBACKS)):
        expected = set(tables[DEFAULT_LANGUAGE])
        for language, table in tables.items():
            if set(table) != expected:
                missing = sorted(expected - set(table))
                extra = sorted(set(table) - expected)
                raise RuntimeError(
                    f"{name} table for '{language}' is incomplete "
                    f"(missing: {missing}, unexpected: {extra})"
                )
    if set(LABELS) != set(FALLBACKS):
        raise RuntimeError("label and fallback tables cover different languages")


_check_key_parity()


@dataclass(frozen=True)
class Locale:
    """Resolved label and fallback tables for one language."""
    code: str
    labels: Mapping[str, str]
    fallbacks: Mapping[str, str]

    def label(self, key: str, **values) -> str:
        text = self.labels[key]
        return text.format(**values) if values else text

    def fallback(self, key: str) -> str:
        return self.fallbacks[key]


class LocalizationProvider:
    """Maps language codes to whole Locale tables."""

    def __init__(self, default_language: str = DEFAULT_LANGUAGE):
        if default_language not in LABELS:
            raise ValueError(f"Unsupported default language: {default_language}")
        self.default_language = default_language
        self._locales = {
            code: Locale(
                code=code,
                labels=MappingProxyType(LABELS[code]),
                fallbacks=MappingProxyType(FALLBACKS[code]),
            )
            for code in LABELS
        }

    @property
    def languages(self):
        return sorted(self._locales)

    def resolve_code(self, code: Optional[str]) -> str:
        """Return the supported code for ``code``, or the default language."""
        normalized = (code or "").strip().lower()
        if normalized in self._locales:
            return normalized
        if normalized:
            logger.debug("Unsupported language '%s', using '%s'", code, self.default_language)
        return self.default_language

    def get(self, code: Optional[str]) -> Locale:
        return self._locales[self.resolve_code(code)]


_provider = LocalizationProvider()


def get_locale(code: Optional[str]) -> Locale:
    """Module-level lookup against the default provider."""
    return _provider.get(code)
