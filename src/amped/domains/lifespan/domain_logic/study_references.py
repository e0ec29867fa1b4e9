"""Literature references backing each metric formula."""

from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True)
class StudyReference:
    """A published study cited by an impact formula."""

    title: str
    lead_author: str
    authors: str
    journal: str
    year: int
    doi: str = ""
    summary: str = ""

    @property
    def citation(self) -> str:
        """Short form, e.g. ``Lee et al. (2019), JAMA Internal Medicine``."""
        return f"{self.lead_author} et al. ({self.year}), {self.journal}"


_REFERENCES: dict[str, StudyReference] = {
    "steps": StudyReference(
        title="Association of Step Volume and Intensity With All-Cause Mortality in Older Women",
        lead_author="Lee",
        authors="I-Min Lee, Eric J. Shiroma, Masamitsu Kamada, David R. Bassett",
        journal="JAMA Internal Medicine",
        year=2019,
        doi="10.1001/jamainternmed.2019.0899",
        summary=(
            "More steps per day were associated with lower mortality up to roughly "
            "7500 steps/day; step intensity added nothing once volume was adjusted for."
        ),
    ),
    "sleep_hours": StudyReference(
        title=(
            "Sleep Duration and All-Cause Mortality: A Systematic Review and "
            "Meta-Analysis of Prospective Studies"
        ),
        lead_author="Cappuccio",
        authors="Francesco P. Cappuccio, Lanfranco D'Elia, Pasquale Strazzullo, Michelle A. Miller",
        journal="Sleep",
        year=2010,
        doi="10.1093/sleep/33.5.585",
        summary="Both short and long sleep predict death; 7-8 hours carried the lowest risk.",
    ),
    "exercise_minutes": StudyReference(
        title=(
            "Association of Leisure-Time Physical Activity With Risk of 26 Types "
            "of Cancer in 1.44 Million Adults"
        ),
        lead_author="Moore",
        authors="Moore SC, Lee IM, Weiderpass E",
        journal="JAMA Internal Medicine",
        year=2016,
        doi="10.1001/jamainternmed.2016.1548",
        summary="Leisure-time activity was associated with lower risk of 13 cancer types.",
    ),
    "heart_rate_variability": StudyReference(
        title=(
            "Heart Rate Variability as a Biomarker for Autonomic Nervous System "
            "Response Differences"
        ),
        lead_author="Evans",
        authors="Evans S, Seidman LC, Tsao JC",
        journal="Journal of Pain Research",
        year=2013,
        doi="10.2147/JPR.S43849",
        summary="Low HRV is linked to higher cardiovascular event and all-cause mortality risk.",
    ),
    "resting_heart_rate": StudyReference(
        title=(
            "Resting Heart Rate and Risk of Cardiovascular Diseases and All-Cause "
            "Death: A Prospective Study"
        ),
        lead_author="Zhang",
        authors="Zhang D, Shen X, Qi X",
        journal="Heart",
        year=2016,
        doi="10.1136/heartjnl-2015-308651",
        summary="Each 10 bpm increase in resting heart rate raised all-cause mortality by 9%.",
    ),
    "vo2_max": StudyReference(
        title=(
            "Association of Cardiorespiratory Fitness With Long-term Mortality "
            "Among Adults Undergoing Exercise Treadmill Testing"
        ),
        lead_author="Mandsager",
        authors="Mandsager K, Harb S, Cremer P",
        journal="JAMA Network Open",
        year=2018,
        doi="10.1001/jamanetworkopen.2018.3605",
        summary="Higher cardiorespiratory fitness was associated with lower mortality with no upper limit.",
    ),
    "nutrition_quality": StudyReference(
        title="Association of Dietary Patterns with Risk of Chronic Disease and Mortality",
        lead_author="Schwingshackl",
        authors="Schwingshackl L, Hoffmann G",
        journal="Advances in Nutrition",
        year=2015,
        doi="10.3945/an.114.007617",
        summary="High-quality dietary patterns were associated with reduced all-cause mortality.",
    ),
    "smoking_status": StudyReference(
        title="Smoking and Mortality: Beyond Established Causes",
        lead_author="Carter",
        authors="Carter BD, Abnet CC, Feskanich D",
        journal="JAMA",
        year=2015,
        doi="10.1001/jama.2015.1617",
        summary="Even light smoking substantially increases risk of death from many causes.",
    ),
    "social_connections_quality": StudyReference(
        title="Social Relationships and Mortality Risk: A Meta-analytic Review",
        lead_author="Holt-Lunstad",
        authors="Holt-Lunstad J, Smith TB, Layton JB",
        journal="PLOS Medicine",
        year=2010,
        doi="10.1371/journal.pmed.1000316",
        summary="Strong social relationships increased the likelihood of survival by 50%.",
    ),
    "alcohol_consumption": StudyReference(
        title="Alcohol Consumption and Mortality among Middle-Aged and Elderly U.S. Adults",
        lead_author="Thun",
        authors="Thun MJ, Peto R, Lopez AD",
        journal="New England Journal of Medicine",
        year=1997,
        doi="10.1056/NEJM199712113372401",
        summary="Heavier drinking was associated with increased death from cancer and other causes.",
    ),
    "stress_level": StudyReference(
        title="Association between psychological distress and mortality",
        lead_author="Russ",
        authors="Russ TC, Stamatakis E, Hamer M",
        journal="BMJ",
        year=2012,
        doi="10.1136/bmj.e4933",
        summary="Even low levels of psychological distress were associated with increased mortality.",
    ),
    "body_mass": StudyReference(
        title="Body-mass index and all-cause mortality",
        lead_author="Di Angelantonio",
        authors="Di Angelantonio E, Bhupathiraju SN, Wormser D",
        journal="The Lancet",
        year=2016,
        doi="10.1016/S0140-6736(16)30175-1",
        summary="All-cause mortality was lowest at healthy weight and rose on either side.",
    ),
}

GENERAL_BASIS = "Observational population research; limited direct mortality evidence."


def get_study_reference(metric_type: str) -> StudyReference | None:
    """Return the primary study for a metric type, if one is catalogued."""
    return _REFERENCES.get(metric_type)


def scientific_basis(metric_type: str) -> str:
    """Citation string attached to an impact detail."""
    ref = get_study_reference(metric_type)
    return ref.citation if ref else GENERAL_BASIS
