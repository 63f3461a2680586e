import pytest

import empathy


def _perspective(**overrides):
    p = {"primary_emotion": "joy", "intensity": 0.5, "human_impact": 0.5,
         "memory_significance": 0.5, "wisdom_potential": 0.5}
    p.update(overrides)
    return p


def test_anxious_help_request():
    engine = empathy.EmpathyEngine()
    result = engine.analyze("u1", "Sorry, I think I'm confused and need help")

    indicators = [c["indicator"] for c in result["micro_clues"]]
    assert indicators == ["uncertainty_markers", "excessive_politeness", "explicit_help_seeking"]

    plan = result["empathy"]
    assert plan["primary_emotion"] == "anxiety"
    assert plan["empathy_level"] == 0.95
    assert plan["support_type"] == "emotional"
    assert plan["approach"] == "gentle"
    assert plan["trauma_informed"] is True
    assert "validate_before_advise" in plan["response_modifiers"]
    assert plan["cultural_considerations"] == ["respect_indirect_communication", "avoid_direct_confrontation"]

    assert result["profile"]["trauma_sensitivity"] == 0.8
    assert result["profile"]["communication_style"] == "indirect"
    assert result["intent"]["primary_intent"] == "assistance_seeking"
    assert "self_doubt_about_capabilities" in result["intent"]["hidden_concerns"]
    assert [s["technique"] for s in result["regulation"]] == ["break_tasks_down", "positive_self_talk"]


def test_enhance_response_softens_and_frames():
    plan = {"primary_emotion": "anxiety", "empathy_level": 0.95, "validation_needed": True,
            "support_type": "emotional",
            "response_modifiers": ["use_gentle_tone", "trauma_informed_language"]}
    text = empathy.enhance_response("You should review. You made a mistake.", plan)

    assert text.startswith(empathy.VALIDATION_PREFIXES["anxiety"])
    assert "You could review." in text
    assert "step in the learning process" in text
    assert text.endswith(empathy.SUPPORTIVE_CONCLUSIONS["emotional"])


def test_enhance_response_leaves_calm_replies_alone():
    plan = {"primary_emotion": "neutral", "empathy_level": 0.7, "validation_needed": False,
            "support_type": "informational", "response_modifiers": []}
    assert empathy.enhance_response("You should review.", plan) == "You should review."


def test_contextual_cues_only_for_returning_users():
    engine = empathy.EmpathyEngine()
    long_text = "word " * 30

    engine.analyze("returning", "hi")
    returning = engine.analyze_emotional_state("returning", long_text)
    first_time = engine.analyze_emotional_state("new", long_text)

    assert returning["focus"] == pytest.approx(0.34)
    assert first_time["focus"] == 0.5


def test_regulation_suggestions_sorted_by_appropriateness():
    state = {"fear": 0.5, "energy": 0.2, "focus": 0.5, "confidence": 0.3}
    techniques = [s["technique"] for s in empathy.regulation_suggestions(state, {})]
    assert techniques == ["deep_breathing", "grounding_technique", "break_tasks_down", "positive_self_talk"]


def test_consensus():
    assert empathy.calculate_consensus([_perspective()]) == 1.0
    split = [_perspective(intensity=0), _perspective(intensity=1)]
    assert empathy.calculate_consensus(split) == 0.6667


def test_sync_perspectives_blends_and_reports_insights():
    perspectives = [
        _perspective(intensity=0.8, human_impact=1.0, wisdom_potential=0.9, memory_significance=0.2),
        _perspective(intensity=0.6, human_impact=1.0, wisdom_potential=0.9, memory_significance=0.7),
    ]
    result = empathy.sync_perspectives(perspectives)
    collective = result["collective_state"]
    assert collective["primary_emotion"] == "joy"
    assert collective["intensity"] == 0.7
    assert collective["memory_significance"] == 0.7
    assert collective["context_source"] == "collective_synthesis"
    assert len(result["insights"]) == 3


def test_validate_perspective():
    assert empathy.validate_perspective(_perspective()) == []
    errors = empathy.validate_perspective(_perspective(primary_emotion="rage", intensity=True, human_impact=2))
    assert len(errors) == 3
    assert empathy.validate_perspective("joy") == ["Perspective must be an object"]


def test_synthesis_needs_a_perspective():
    with pytest.raises(ValueError):
        empathy.synthesize_collective_emotion([])
