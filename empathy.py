# empathy.py
import logging, re, threading

logger = logging.getLogger(__name__)

DIMENSIONS = [
    'joy', 'trust', 'fear', 'surprise', 'sadness', 'disgust', 'anger', 'anticipation',
    'energy', 'focus', 'intimacy', 'creativity',
    'confidence', 'resonance', 'growth',
]

COLLECTIVE_BASELINE = {
    'joy': 0.6, 'trust': 0.7, 'fear': 0.2, 'surprise': 0.4,
    'sadness': 0.1, 'disgust': 0.05, 'anger': 0.1, 'anticipation': 0.6,
    'energy': 0.5, 'focus': 0.5, 'intimacy': 0.4, 'creativity': 0.5,
    'confidence': 0.8, 'resonance': 0.6, 'growth': 0.7,
}

WORD_LISTS = {
    'joy': ['happy', 'great', 'awesome', 'excellent', 'love', 'amazing', 'perfect', 'wonderful', '😊', '😄', '🎉', '❤️'],
    'trust': ['thanks', 'helpful', 'reliable', 'appreciate', 'confident', 'trust', 'good job'],
    'fear': ['confused', 'lost', 'scared', 'worried', 'anxious', 'help', 'stuck', 'problem'],
    'surprise': ['wow', 'amazing', 'incredible', 'unexpected', 'surprised', 'really?'],
    'creativity': ['creative', 'imagine', 'artistic', 'design', 'innovative', 'original', 'inspire'],
}

COMMON_TYPOS = ['teh', 'adn', 'recieve', 'seperate', 'occured']

VALIDATION_PREFIXES = {
    'anxiety': "I can sense this feels challenging, and that's completely understandable.",
    'sadness': "It sounds like you're going through something difficult right now.",
    'uncertainty': "It's natural to feel unsure when encountering something new.",
    'vulnerability': "Thank you for reaching out. It takes courage to ask for help.",
}

SUPPORTIVE_CONCLUSIONS = {
    'emotional': "Remember, you're not alone in this. Take things one step at a time, and be gentle with yourself.",
    'practical': ("These steps should help, but please don't hesitate to reach out if you need more support "
                  "or if something doesn't feel right."),
    'motivational': "You've got this! Trust in your ability to learn and grow through this process.",
    'informational': ("I'm here to support you through this journey. Feel free to ask if you need anything "
                      "clarified or want to explore this further."),
}

GENTLE_TONE = [
    (r"You need to", "You might want to"),
    (r"You should", "You could"),
    (r"You must", "It would help to"),
    (r"Obviously", "One thing to consider is"),
    (r"Simply", "Gently"),
]

TRAUMA_INFORMED = [
    (r"You failed", "That approach didn't work out"),
    (r"\bfailure\b", "learning opportunity"),
    (r"\bwrong\b", "different approach needed"),
    (r"\bmistake\b", "step in the learning process"),
]

PRIMARY_EMOTIONS = ('joy', 'curiosity', 'empathy', 'concern', 'excitement', 'contemplation')


def _word_weight(text, words):
    weight = 0.0
    for word in words:
        pattern = r"(?<!\w)" + re.escape(word) + r"(?!\w)"
        weight += len(re.findall(pattern, text, re.I)) * 0.1
    return min(1.0, weight)


def extract_emotional_markers(text):
    """Per-dimension signal strengths read straight off the message text."""
    lowered = (text or '').lower()
    markers = {name: _word_weight(lowered, words) for name, words in WORD_LISTS.items()}
    exclamations = text.count('!')
    questions = text.count('?')
    caps_ratio = sum(1 for ch in text if 'A' <= ch <= 'Z') / len(text) if text else 0.0
    markers['energy'] = min(1.0, exclamations * 0.2 + caps_ratio * 2)
    markers['anticipation'] = min(1.0, questions * 0.3)
    return markers


def contextual_cues(text):
    cues = {}
    if len(text) > 100:
        cues['focus'] = 0.7
        cues['intimacy'] = 0.1
    typos = sum(1 for typo in COMMON_TYPOS if typo in text.lower())
    if typos and typos > len(text) * 0.05:
        cues['energy'] = cues.get('energy', 0) + 0.1
        cues['fear'] = cues.get('fear', 0) + 0.1
    return cues


def analyze_micro_clues(text):
    """Small linguistic signals of how the writer is feeling."""
    lowered = (text or '').lower()
    clues = []
    if any(k in lowered for k in ('i guess', 'maybe', 'i think')):
        clues.append({"type": "linguistic", "indicator": "uncertainty_markers",
                      "confidence": 0.8, "emotional_weight": 0.4, "cultural_context": "lack_of_confidence"})
    if '...' in text or len(text.split('.')) > 5:
        clues.append({"type": "syntactic", "indicator": "fragmented_thoughts",
                      "confidence": 0.6, "emotional_weight": 0.3, "cultural_context": "cognitive_overload"})
    if text.count('!') > 2:
        clues.append({"type": "syntactic", "indicator": "high_emotional_intensity",
                      "confidence": 0.7, "emotional_weight": 0.5, "cultural_context": "excitement_or_frustration"})
    if any(k in lowered for k in ('sorry', 'if possible', "if you don't mind")):
        clues.append({"type": "linguistic", "indicator": "excessive_politeness",
                      "confidence": 0.9, "emotional_weight": 0.4, "cultural_context": "anxiety_or_cultural_politeness"})
    if any(k in lowered for k in ('help', 'stuck', 'confused')):
        clues.append({"type": "contextual", "indicator": "explicit_help_seeking",
                      "confidence": 0.95, "emotional_weight": 0.7, "cultural_context": "vulnerability_expression"})
    return clues


def _has(clues, indicator):
    return any(c['indicator'] == indicator for c in clues)


def analyze_intent(text, state):
    lowered = (text or '').lower()
    if 'help' in lowered or '?' in text:
        primary = 'assistance_seeking'
    elif state['joy'] > 0.5:
        primary = 'sharing_enthusiasm'
    elif state['fear'] > 0.3:
        primary = 'problem_solving'
    elif 'learn' in lowered or 'understand' in lowered:
        primary = 'knowledge_acquisition'
    else:
        primary = 'information_seeking'

    hidden = []
    if state['confidence'] < 0.5:
        hidden.append('self_doubt_about_capabilities')
    if state['fear'] > 0.3:
        hidden.append('anxiety_about_making_mistakes')
    if len(text) > 200 and '?' not in text:
        hidden.append('need_for_validation_or_feedback')

    support = []
    if state['confidence'] < 0.6:
        support.append('encouragement_and_reassurance')
    if 'anxiety_about_making_mistakes' in hidden:
        support.append('patient_step_by_step_guidance')

    return {"primary_intent": primary, "hidden_concerns": hidden, "support_needs": support}


def infer_communication_style(clues):
    if _has(clues, 'excessive_politeness'):
        return 'indirect'
    if _has(clues, 'high_emotional_intensity'):
        return 'expressive'
    if len(clues) < 2:
        return 'reserved'
    return 'direct'


def infer_trauma_sensitivity(clues):
    sensitivity = 0.3
    if any(c['indicator'] == 'excessive_politeness' and c['confidence'] > 0.8 for c in clues):
        sensitivity += 0.3
    if any(c['indicator'] == 'uncertainty_markers' and c['emotional_weight'] > 0.3 for c in clues):
        sensitivity += 0.2
    return round(min(1.0, sensitivity), 4)


class EmpathyEngine:
    """Tracks per-user emotional state and plans empathetic replies."""

    def __init__(self):
        self.collective = dict(COLLECTIVE_BASELINE)
        self.states = {}
        self.profiles = {}
        self._lock = threading.Lock()

    def previous_state(self, user_id):
        return self.states.get(user_id) or self.collective

    def analyze_emotional_state(self, user_id, text):
        markers = extract_emotional_markers(text)
        with self._lock:
            known = user_id in self.states
            previous = self.previous_state(user_id)
            cues = contextual_cues(text) if known else {}
            state = dict(previous)
            for dim in set(markers) | set(cues):
                current = markers.get(dim, 0.0)
                boost = cues.get(dim, 0.0)
                prior = previous.get(dim, 0.5)
                state[dim] = round(min(1.0, current * 0.4 + boost * 0.2 + prior * 0.4), 4)
            state['confidence'] = round(min(1.0, sum(markers.values()) / 3), 4)
            self.states[user_id] = state
        return state

    def get_or_create_profile(self, user_id, clues):
        with self._lock:
            if user_id not in self.profiles:
                self.profiles[user_id] = {
                    "user_id": user_id,
                    "baseline_empathy": 0.7,
                    "communication_style": infer_communication_style(clues),
                    "emotional_range": 'variable',
                    "trauma_sensitivity": infer_trauma_sensitivity(clues),
                    "stress_tolerance": 0.5,
                    "preferred_support_style": 'emotional',
                    "cultural_background": None,
                }
            return self.profiles[user_id]

    def generate_empathetic_response(self, user_id, clues, state, intent):
        profile = self.get_or_create_profile(user_id, clues)

        if state['fear'] > 0.4 or any('anxiety' in (c.get('cultural_context') or '') for c in clues):
            emotion = 'anxiety'
        elif state['sadness'] > 0.3:
            emotion = 'sadness'
        elif _has(clues, 'uncertainty_markers'):
            emotion = 'uncertainty'
        elif state['joy'] > 0.6:
            emotion = 'joy'
        elif _has(clues, 'explicit_help_seeking'):
            emotion = 'vulnerability'
        else:
            emotion = 'neutral'

        level = {'anxiety': 0.95, 'vulnerability': 0.95, 'sadness': 0.9,
                 'uncertainty': 0.8, 'joy': 0.6}.get(emotion, 0.7)
        if profile['trauma_sensitivity'] > 0.7:
            level = max(level, 0.9)

        validation_needed = (emotion in ('anxiety', 'sadness', 'vulnerability')
                             or any(c['emotional_weight'] > 0.5 for c in clues))

        primary_intent = intent['primary_intent']
        if emotion in ('anxiety', 'vulnerability'):
            support = 'emotional'
        elif primary_intent == 'problem_solving':
            support = 'practical'
        elif state['creativity'] > 0.6:
            support = 'motivational'
        else:
            support = 'informational'

        if emotion in ('anxiety', 'vulnerability'):
            approach = 'gentle'
        elif primary_intent == 'knowledge_acquisition' and state['anticipation'] > 0.7:
            approach = 'exploratory'
        elif primary_intent == 'problem_solving':
            approach = 'analytical'
        elif state['creativity'] > 0.6:
            approach = 'creative'
        elif state['energy'] > 0.7:
            approach = 'motivational'
        else:
            approach = 'supportive'

        modifiers = []
        if level > 0.8:
            modifiers += ['use_gentle_tone', 'acknowledge_feelings']
        if validation_needed:
            modifiers.append('validate_before_advise')
        if profile['communication_style'] == 'reserved':
            modifiers.append('respect_boundaries')
        if profile['trauma_sensitivity'] > 0.6:
            modifiers.append('trauma_informed_language')

        cultural = []
        if profile['cultural_background'] == 'eastern' or _has(clues, 'excessive_politeness'):
            cultural += ['respect_indirect_communication', 'avoid_direct_confrontation']

        return {
            "primary_emotion": emotion,
            "empathy_level": level,
            "validation_needed": validation_needed,
            "support_type": support,
            "response_modifiers": modifiers,
            "cultural_considerations": cultural,
            "trauma_informed": profile['trauma_sensitivity'] > 0.6,
            "approach": approach,
        }

    def analyze(self, user_id, text):
        """Full read of a message: state, clues, intent, reply plan and regulation tips."""
        state = self.analyze_emotional_state(user_id, text)
        clues = analyze_micro_clues(text)
        intent = analyze_intent(text, state)
        plan = self.generate_empathetic_response(user_id, clues, state, intent)
        profile = self.profiles[user_id]
        return {
            "emotional_state": state,
            "micro_clues": clues,
            "intent": intent,
            "empathy": plan,
            "profile": dict(profile),
            "regulation": regulation_suggestions(state, profile),
        }


def regulation_suggestions(state, profile):
    suggestions = []
    if state['fear'] > 0.4:
        suggestions.append({
            "technique": 'grounding_technique',
            "description": ("Try the 5-4-3-2-1 technique: Notice 5 things you can see, 4 you can touch, "
                            "3 you can hear, 2 you can smell, 1 you can taste."),
            "appropriateness": 0.9, "difficulty": 'simple', "time_required": '2-3 minutes',
            "culturally_sensitive": True,
        })
        suggestions.append({
            "technique": 'deep_breathing',
            "description": "Take slow, deep breaths: Inhale for 4 counts, hold for 4, exhale for 6.",
            "appropriateness": 0.95, "difficulty": 'simple', "time_required": '1-2 minutes',
            "culturally_sensitive": True,
        })
    if state['energy'] < 0.3 or state['focus'] < 0.4:
        suggestions.append({
            "technique": 'break_tasks_down',
            "description": ("When feeling overwhelmed, break what you're working on into smaller, manageable "
                            "steps. Focus on just one step at a time."),
            "appropriateness": 0.8, "difficulty": 'simple', "time_required": 'ongoing',
            "culturally_sensitive": True,
        })
    if state['confidence'] < 0.4:
        suggestions.append({
            "technique": 'positive_self_talk',
            "description": "Remind yourself: \"I'm learning and growing. It's okay not to know everything right now.\"",
            "appropriateness": 0.7, "difficulty": 'simple', "time_required": 'moment',
            "culturally_sensitive": profile.get('cultural_background') != 'eastern',
        })
    return sorted(suggestions, key=lambda s: s['appropriateness'], reverse=True)


def enhance_response(text, plan):
    enhanced = text
    if plan['validation_needed']:
        prefix = VALIDATION_PREFIXES.get(plan['primary_emotion'], "I hear what you're saying.")
        enhanced = f"{prefix}\n\n{enhanced}"
    if 'use_gentle_tone' in plan['response_modifiers']:
        for pattern, replacement in GENTLE_TONE:
            enhanced = re.sub(pattern, replacement, enhanced)
    if 'trauma_informed_language' in plan['response_modifiers']:
        for pattern, replacement in TRAUMA_INFORMED:
            enhanced = re.sub(pattern, replacement, enhanced)
    if plan['empathy_level'] > 0.8:
        conclusion = SUPPORTIVE_CONCLUSIONS.get(plan['support_type'], SUPPORTIVE_CONCLUSIONS['informational'])
        enhanced = f"{enhanced}\n\n{conclusion}"
    return enhanced


def _variance(values):
    mean = sum(values) / len(values)
    return sum((v - mean) ** 2 for v in values) / len(values)


def synthesize_collective_emotion(perspectives):
    """Weighted blend of several emotional perspectives.

    Each perspective weighs 0.6 * wisdom_potential + 0.4 * human_impact.
    """
    if not perspectives:
        raise ValueError("At least one perspective is required")
    weights = [p['wisdom_potential'] * 0.6 + p['human_impact'] * 0.4 for p in perspectives]
    total = sum(weights)
    if total <= 0:
        weights = [1.0] * len(perspectives)
        total = float(len(perspectives))

    def weighted(key):
        return round(sum(p[key] * w for p, w in zip(perspectives, weights)) / total, 4)

    emotion_weights = {}
    for p, w in zip(perspectives, weights):
        emotion_weights[p['primary_emotion']] = emotion_weights.get(p['primary_emotion'], 0) + w
    dominant = max(emotion_weights.items(), key=lambda kv: kv[1])[0]

    return {
        "primary_emotion": dominant,
        "intensity": weighted('intensity'),
        "context_source": 'collective_synthesis',
        "human_impact": weighted('human_impact'),
        "memory_significance": max(p['memory_significance'] for p in perspectives),
        "wisdom_potential": weighted('wisdom_potential'),
    }


def calculate_consensus(perspectives):
    if len(perspectives) < 2:
        return 1.0
    avg_variance = (_variance([p['intensity'] for p in perspectives])
                    + _variance([p['human_impact'] for p in perspectives])
                    + _variance([p['wisdom_potential'] for p in perspectives])) / 3
    return round(max(0.0, 1 - avg_variance * 4), 4)


def validate_perspective(p):
    errors = []
    if not isinstance(p, dict):
        return ["Perspective must be an object"]
    if p.get('primary_emotion') not in PRIMARY_EMOTIONS:
        errors.append(f"primary_emotion must be one of {', '.join(PRIMARY_EMOTIONS)}")
    for key in ('intensity', 'human_impact', 'memory_significance', 'wisdom_potential'):
        value = p.get(key)
        if isinstance(value, bool) or not isinstance(value, (int, float)) or not 0 <= value <= 1:
            errors.append(f"{key} must be a number between 0 and 1")
    return errors


def sync_perspectives(perspectives):
    collective = synthesize_collective_emotion(perspectives)
    consensus = calculate_consensus(perspectives)
    insights = []
    if consensus > 0.8:
        insights.append(f"Strong consensus on emotional approach: {collective['primary_emotion']}")
    if collective['human_impact'] > 0.9:
        insights.append("All perspectives aligned on maximizing human benefit")
    if sum(1 for p in perspectives if p['wisdom_potential'] > 0.7) > 1:
        insights.append("Multiple high-wisdom perspectives available for learning")
    return {"collective_state": collective, "consensus_confidence": consensus, "insights": insights}


engine = EmpathyEngine()
