"""Prompt builder for creative ideas and keyword analysis."""

from typing import Sequence

from app.domain.insights import InsightRecord

_FALLBACK_SYSTEM = (
    "You are an experienced marketer and TikTok creator. "
    "Answer in {language}."
)

_ANALYST_SYSTEM = (
    "You are an experienced marketing analyst and TikTok Ads scriptwriter. "
    "Answer in {language}."
)

_FALLBACK_TEMPLATE = """\
You are an experienced marketer and scriptwriter for TikTok Ads.

TikTok Creative Center has no data for the request "{topic}".

Come up with a video idea on this topic yourself:

1. Topic: "{topic}"

2. Script for a 1-minute video
   - A hook in the first 3 seconds
   - How the story develops
   - Call to action

3. Why this topic may work (strengths and possible risks)

4. Suggest 5-7 hashtags relevant to the topic

Answer in {language}.
"""

_ANALYSIS_TEMPLATE = """\
You are an experienced marketing analyst and scriptwriter for TikTok Ads. Answer in {language}.

The client wants analytics for "{topic}". {count} result(s) were found.

Give a detailed, easy-to-follow breakdown for every result, in this format:

1. Keyword: [keyword]

2. Metric analysis
   - Popularity: is this high or low for the niche
   - Popularity change: what the percentage means and how to read it
   - CTR: what it says about interest in the ad
   - CVR: what the percentage shows and why it matters
   - CPA: what the cost per action means, cheap or expensive
   - Content Gap Score: what the metric means, what a high or low score says
   - Strengths: which numbers are strong and why that benefits an advertiser
   - Weaknesses: where the risks are or what may not work

3. Script for a 1-minute video
   - A hook in the first 3 seconds
   - How the story develops
   - Call to action

4. Suggest 5-7 hashtags and explain how they help promotion

Use plain language without bureaucratic phrasing.

Results:
{rows}
"""

_ROW_TEMPLATE = """\
#{index}
Keyword: {label}
Rank: {rank}
Popularity: {popularity}
Popularity change: {change}
CTR: {ctr}
CVR: {cvr}
CPA: {cpa}
Content Gap Score: {score}"""


class InsightPromptBuilder:
    """Builds the prompts sent to the completion service.

    Args:
        response_language: Language the model is asked to answer in.
    """

    def __init__(self, response_language: str = "Ukrainian") -> None:
        self._language = response_language

    def fallback_system(self) -> str:
        return _FALLBACK_SYSTEM.format(language=self._language)

    def analyst_system(self) -> str:
        return _ANALYST_SYSTEM.format(language=self._language)

    def fallback_idea(self, topic: str) -> str:
        """Prompt for a generated video idea when the dashboard has no data.

        Args:
            topic: The keyword or theme the user asked about.

        Returns:
            A fully formatted prompt string.
        """
        return _FALLBACK_TEMPLATE.format(topic=topic, language=self._language)

    def records_analysis(self, topic: str, records: Sequence[InsightRecord]) -> str:
        """Prompt for a per-record analysis of ranked keyword insights.

        Args:
            topic: Keyword the records were searched for.
            records: Ranked records, best first.

        Returns:
            A fully formatted prompt string.
        """
        rows = "\n\n".join(
            _ROW_TEMPLATE.format(
                index=index,
                label=record.label,
                rank=record.rank,
                popularity=record.popularity or "-",
                change=record.popularity_change_percent or "-",
                ctr=record.ctr or "-",
                cvr=record.cvr or "-",
                cpa=record.cpa or "-",
                score="-" if record.content_gap_score is None else f"{record.content_gap_score:.2f}",
            )
            for index, record in enumerate(records, start=1)
        )
        return _ANALYSIS_TEMPLATE.format(
            topic=topic,
            count=len(records),
            rows=rows,
            language=self._language,
        )
