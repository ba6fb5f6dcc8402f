import unittest

from engine.context import SearchContext, SearchPreferences
from engine.search_scoring import (
    REASON_LOW_RELEVANCE,
    REASON_TOO_LONG,
    grade_appropriateness_points,
    score_candidate,
)
from engine.types import CandidateItem


def _context(**overrides):
    values = {"subject": "Science", "grade_level": "5th Grade", "topic": "Photosynthesis"}
    values.update(overrides)
    return SearchContext(**values)


class CandidateScoringTests(unittest.TestCase):
    def test_trusted_source_with_matching_context_scores_high(self):
        candidate = CandidateItem(
            id="vid-1",
            title="Photosynthesis Explained - Science Lesson",
            description="Learn how plants make food in this biology lesson for kids",
            channel_title="Crash Course Kids",
        )
        scored = score_candidate(candidate, _context(), "photosynthesis")
        self.assertGreaterEqual(scored.confidence, 75)
        self.assertEqual(scored.filter_reasons, ())
        self.assertTrue(scored.is_accepted)
        self.assertIn("Trusted channel: Crash Course", scored.educational_indicators)
        self.assertIn("Topic match: Photosynthesis", scored.educational_indicators)
        self.assertIn("Title contains search term", scored.educational_indicators)

    def test_disallowed_content_is_rejected_with_zero_confidence(self):
        candidate = CandidateItem(
            id="vid-2",
            title="Graphic violence in war documentary",
            description="A history lesson",
            channel_title="Random Channel",
        )
        scored = score_candidate(candidate, _context(subject="Social Studies", topic="War"), "war")
        self.assertEqual(scored.confidence, 0)
        self.assertEqual(len(scored.filter_reasons), 1)
        self.assertTrue(scored.filter_reasons[0].startswith("Contains inappropriate content"))
        self.assertFalse(scored.is_accepted)

    def test_safety_gate_overrides_trusted_channel(self):
        candidate = CandidateItem(
            id="vid-3",
            title="Photosynthesis lesson with disturbing footage",
            description="",
            channel_title="Khan Academy",
        )
        scored = score_candidate(candidate, _context(), "photosynthesis")
        self.assertEqual(scored.confidence, 0)
        self.assertEqual(scored.filter_reasons, ("Contains inappropriate content: disturbing",))

    def test_scoring_is_deterministic(self):
        candidate = CandidateItem(
            id="vid-4",
            title="Photosynthesis experiment",
            description="lab demonstration for elementary students",
            channel_title="Science Max",
            duration_seconds=600,
        )
        context = _context(target_duration_minutes=10)
        first = score_candidate(candidate, context, "photosynthesis")
        second = score_candidate(candidate, context, "photosynthesis")
        self.assertEqual(first, second)

    def test_low_relevance_is_flagged(self):
        candidate = CandidateItem(id="vid-5", title="My weekend vlog", channel_title="Someone")
        scored = score_candidate(candidate, _context(), "photosynthesis")
        self.assertLess(scored.confidence, 20)
        self.assertIn(REASON_LOW_RELEVANCE, scored.filter_reasons)

    def test_duration_only_counts_when_target_is_given(self):
        candidate = CandidateItem(
            id="vid-6",
            title="Photosynthesis lesson",
            channel_title="Teacher",
            duration_seconds=45 * 60,
        )
        without_target = score_candidate(candidate, _context(), "photosynthesis")
        with_target = score_candidate(candidate, _context(target_duration_minutes=10), "photosynthesis")
        self.assertNotIn(REASON_TOO_LONG, without_target.filter_reasons)
        self.assertIn(REASON_TOO_LONG, with_target.filter_reasons)
        self.assertEqual(with_target.confidence, without_target.confidence - 5)

    def test_appropriate_duration_adds_points(self):
        candidate = CandidateItem(id="vid-7", title="Photosynthesis lesson", duration_seconds=8 * 60)
        plain = score_candidate(candidate, _context(), "photosynthesis")
        timed = score_candidate(candidate, _context(target_duration_minutes=8), "photosynthesis")
        self.assertEqual(timed.confidence, plain.confidence + 10)
        self.assertIn("Appropriate duration", timed.educational_indicators)

    def test_excluded_channel_is_rejected(self):
        context = _context(preferences=SearchPreferences(excluded_channels=("Spammy Science",)))
        candidate = CandidateItem(id="vid-8", title="Photosynthesis lesson", channel_title="Spammy Science TV")
        scored = score_candidate(candidate, context, "photosynthesis")
        self.assertEqual(scored.confidence, 0)
        self.assertEqual(scored.filter_reasons, ("Excluded channel: Spammy Science",))

    def test_preferred_channel_counts_as_trusted(self):
        context = _context(preferences=SearchPreferences(preferred_channels=("Mr. Smith Science",)))
        candidate = CandidateItem(id="vid-9", title="Plants", channel_title="Mr. Smith Science")
        scored = score_candidate(candidate, context, "photosynthesis")
        self.assertIn("Trusted channel: Mr. Smith Science", scored.educational_indicators)

    def test_preferred_confidence_floor_filters(self):
        context = _context(preferences=SearchPreferences(min_confidence_threshold=90))
        candidate = CandidateItem(id="vid-10", title="Photosynthesis lesson", channel_title="Teacher")
        scored = score_candidate(candidate, context, "photosynthesis")
        self.assertLess(scored.confidence, 90)
        self.assertIn("Below preferred confidence threshold (90)", scored.filter_reasons)

    def test_confidence_is_capped_at_100(self):
        candidate = CandidateItem(
            id="vid-11",
            title="Photosynthesis science lesson tutorial experiment lab demonstration",
            description="biology chemistry physics scientific research education explanation 5th grade",
            channel_title="Khan Academy",
            duration_seconds=600,
        )
        scored = score_candidate(candidate, _context(target_duration_minutes=10), "photosynthesis")
        self.assertEqual(scored.confidence, 100)


class GradeAppropriatenessTests(unittest.TestCase):
    def test_literal_grade_level_wins(self):
        context = _context(grade_level="5th Grade")
        self.assertEqual(grade_appropriateness_points("Fractions for 5th grade", "", context), 15)

    def test_band_vocabulary_matches_whole_words_only(self):
        context = _context(grade_level="AP Biology")
        self.assertEqual(grade_appropriateness_points("Apple tree growth", "", context), 5)
        self.assertEqual(grade_appropriateness_points("AP review session", "", context), 15)

    def test_elementary_vocabulary(self):
        context = _context(grade_level="2nd Grade")
        self.assertEqual(grade_appropriateness_points("Plants for kids", "", context), 12)

    def test_short_grade_label_needs_a_whole_word(self):
        context = _context(subject="Math", grade_level="K", topic="counting")
        self.assertEqual(grade_appropriateness_points("Stock market week", "", context), 5)
        self.assertEqual(grade_appropriateness_points("Counting to ten for K students", "", context), 15)

        scored = score_candidate(CandidateItem(id="vid-20", title="Stock market week"), context, "counting")
        self.assertEqual(scored.confidence, 5)

    def test_base_points_without_match(self):
        context = _context(grade_level="10th Grade")
        self.assertEqual(grade_appropriateness_points("Plants", "", context), 5)


if __name__ == "__main__":
    unittest.main()
