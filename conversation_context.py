# conversation_context.py
import random
import re

TOPIC_PATTERNS = [
    (re.compile(r"\b(math|calculus|algebra|geometry|trigonometry|statistics)\b", re.I), 'mathematics'),
    (re.compile(r"\b(physics|chemistry|biology|science|lab|experiment)\b", re.I), 'science'),
    (re.compile(r"\b(code|coding|programming|javascript|python|react|api|database|algorithm)\b", re.I), 'programming'),
    (re.compile(r"\b(write|writing|essay|grammar|literature|english|composition)\b", re.I), 'writing'),
    (re.compile(r"\b(history|geography|social|politics|economics|culture)\b", re.I), 'social_studies'),
    (re.compile(r"\b(art|design|creative|music|visual|aesthetic)\b", re.I), 'creative_arts'),
]

TONE_PATTERNS = [
    (re.compile(r"\b(frustrated|stuck|confused|don't understand|help)\b", re.I), 'frustrated'),
    (re.compile(r"\b(interesting|curious|wonder|explore|learn more)\b", re.I), 'curious'),
    (re.compile(r"\b(unclear|confusing|not sure|don't get)\b", re.I), 'confused'),
    (re.compile(r"\b(understand|got it|makes sense|clear now)\b", re.I), 'confident'),
]

COMPLEX_TERMS = re.compile(
    r"\b(algorithm|implementation|optimization|abstraction|polymorphism|derivative|integral|synthesis|analysis)\b", re.I)
BASIC_TERMS = re.compile(r"\b(what is|how do|basic|simple|beginner|start|first time)\b", re.I)
GREETING = re.compile(r"^(hello[\s\W]*|hi[\s\W]*|hey[\s\W]*|good\s+(morning|afternoon|evening)[\s\W]*|kumusta[\s\W]*)$", re.I)

ENCOURAGEMENT = [
    "I understand this can be challenging. Let's break it down step by step.",
    "Don't worry, learning involves struggles and that's completely normal!",
    "I'm here to help you work through this. Let's approach it from a different angle.",
    "Every expert was once a beginner. Let's tackle this together.",
]

EXPLORATION = [
    "I love your curiosity! Let's explore this fascinating topic together.",
    "That's an excellent question that opens up many interesting possibilities!",
    "Your curiosity is the foundation of great learning. Let's dive deeper!",
    "Great question! This connects to so many interesting concepts.",
]

CLARIFICATION = [
    "I can help clarify this for you. Let's start with the fundamentals.",
    "Let me explain this more clearly. Understanding builds step by step.",
    "Good question! Let me break this down into simpler parts.",
    "I see the confusion. Let's approach this systematically.",
]

ADVANCED = [
    "Great! I can see you're grasping these concepts well. Let's explore more advanced applications.",
    "Excellent understanding! Ready to dive into some more complex aspects?",
    "You're demonstrating solid comprehension. Let's challenge ourselves further.",
    "Perfect! Your grasp of this topic opens doors to more sophisticated concepts.",
]

LEVEL_INTROS = {
    'beginner': "Let's build on the basics we've covered",
    'intermediate': "Based on your growing understanding",
    'advanced': "Given your strong grasp of the concepts",
}

SUBJECT_RESPONSES = {
    'mathematics and science': [
        "I love helping with math and science! These subjects are all about understanding patterns and relationships in our world.",
        "Math and science can be challenging, but breaking problems down into smaller steps often makes them much clearer.",
        "Science and mathematics are interconnected: math helps us describe and predict scientific phenomena!",
    ],
    'programming and technology': [
        "Programming is like learning a new language to communicate with computers. It's very logical and creative!",
        "Technology is constantly evolving, but the fundamental problem-solving skills remain the same across all programming languages.",
        "Coding is all about breaking down complex problems into smaller, manageable pieces.",
    ],
    'language and writing': [
        "Writing is a powerful way to organize and express your thoughts clearly and persuasively.",
        "Language skills improve with practice. Reading widely and writing regularly are key to improvement.",
        "Good writing starts with understanding your audience and purpose.",
    ],
}

STUDY_TIPS = [
    "Effective studying involves active engagement with the material rather than just reading passively.",
    "Breaking study sessions into focused chunks with short breaks can improve retention significantly.",
    "Teaching or explaining concepts to someone else is one of the best ways to solidify your understanding.",
    "Creating connections between new information and what you already know helps with long-term memory.",
]

DEFAULT_RESPONSES = [
    "I'm here to support your learning journey! Even when technical systems have hiccups, education continues.",
    "Learning is an active process, and I'm glad you're engaging with challenging material.",
    "Your curiosity and willingness to ask questions is the foundation of great learning.",
    "Understanding comes from connecting new ideas with what you already know.",
]

TECHNICAL_DIFFICULTY = ("I apologize that you're experiencing technical difficulties! I'm here to help with your "
                        "learning. Even though some systems might be temporarily unavailable, I can still assist you "
                        "with explanations, study guidance, and educational support. What specific topic would you "
                        "like to explore together?")


def message_text(message) -> str:
    """Text of a chat message whose content is either a string or a list of parts."""
    content = (message or {}).get('content')
    if isinstance(content, str):
        return content
    if isinstance(content, list):
        parts = [p.get('text', '') for p in content if isinstance(p, dict) and p.get('type') == 'text']
        return ' '.join(p for p in parts if p)
    return ''


def analyze_conversation_context(messages):
    context = {
        "topics": [],
        "user_knowledge_level": 'intermediate',
        "conversation_flow": 'exploratory',
        "emotional_tone": 'neutral',
        "previous_context": list(messages or [])[-6:],
    }

    for msg in messages or []:
        if msg.get('role') != 'user':
            continue
        content = message_text(msg)
        lowered = content.lower()

        for pattern, topic in TOPIC_PATTERNS:
            if pattern.search(lowered) and topic not in context["topics"]:
                context["topics"].append(topic)

        for pattern, tone in TONE_PATTERNS:
            if pattern.search(lowered):
                context["emotional_tone"] = tone
                break

        if len(COMPLEX_TERMS.findall(content)) > 2:
            context["user_knowledge_level"] = 'advanced'
        elif BASIC_TERMS.search(content):
            context["user_knowledge_level"] = 'beginner'

    return context


def _with_topics(lead, context, has_history, with_topics, without):
    topics = context["topics"]
    if has_history and topics:
        return f"{lead} {with_topics.format(topics=', '.join(topics))}"
    return f"{lead} {without}"


def supportive_response(context, has_history):
    return _with_topics(random.choice(ENCOURAGEMENT), context, has_history,
                        "Building on our previous discussion about {topics}, what specific part is giving you trouble?",
                        "What specific aspect would you like help with?")


def exploratory_response(context, has_history):
    return _with_topics(random.choice(EXPLORATION), context, has_history,
                        "Since we've been discussing {topics}, how do you think this connects to what we've covered?",
                        "What aspects of this topic intrigue you most?")


def clarification_response(context, has_history):
    return _with_topics(random.choice(CLARIFICATION), context, has_history,
                        "Thinking back to our discussion on {topics}, which part needs more explanation?",
                        "What specific aspect would you like me to clarify?")


def advanced_response(context, has_history):
    return _with_topics(random.choice(ADVANCED), context, has_history,
                        "Given your understanding of {topics}, what advanced concepts interest you?",
                        "What challenging aspects would you like to explore?")


def contextual_subject_response(context):
    intro = LEVEL_INTROS.get(context["user_knowledge_level"], LEVEL_INTROS['intermediate'])
    return f"{intro} in {', '.join(context['topics'])}, how can I help you take the next step in your learning journey?"


def subject_response(subject, has_history, knowledge_level='intermediate'):
    base = random.choice(SUBJECT_RESPONSES.get(subject, SUBJECT_RESPONSES['mathematics and science']))
    if knowledge_level == 'beginner':
        base += " Let's start with the fundamentals and build up your understanding step by step."
    elif knowledge_level == 'advanced':
        base += " I can see you have a strong foundation, so let's explore some advanced concepts."
    if has_history:
        return f"{base} Based on our conversation so far, what specific aspect would you like to dive deeper into?"
    return f"{base} What particular question or topic in {subject} can I help you with?"


def study_help_response(context, has_history):
    tip = random.choice(STUDY_TIPS)
    topics = context["topics"]
    if has_history and topics:
        return f"{tip} How can I help you apply this to {', '.join(topics)} that we've been discussing?"
    if has_history:
        return f"{tip} How can I help you apply this to the topics we've been discussing?"
    return f"{tip} What subject or specific assignment are you working on? I'd be happy to help you develop a study strategy!"


def question_response(context, has_history):
    level = context["user_knowledge_level"]
    if level == 'advanced':
        lead = "That's a sophisticated question that shows deep thinking!"
    elif level == 'beginner':
        lead = "Great question! Asking questions is how we learn."
    else:
        lead = "That's a thoughtful question!"
    topics = context["topics"]
    if has_history and topics:
        return f"{lead} Building on our discussion of {', '.join(topics)}, let me help you work through this step by step."
    if has_history:
        return (f"{lead} I can see you're thinking deeply about this topic. Let me help you work through this "
                "step by step, building on what we've already covered.")
    return f"{lead} I appreciate your curiosity. The best way to approach this is to break it down systematically."


def default_response(context, has_history):
    base = random.choice(DEFAULT_RESPONSES)
    topics = context["topics"]
    if has_history and topics:
        return f"{base} Let's continue building on our discussion of {', '.join(topics)}. What aspect interests you most?"
    if has_history:
        return f"{base} Let's continue building on our discussion. What aspect interests you most?"
    return f"{base} What specific topic, subject, or question would you like to explore together?"


def generate_smart_educational_response(user_message, history):
    """Offline tutoring reply used when every model provider has failed.

    Picks a reply from the emotional tone first, then the subject matter,
    then the shape of the message.
    """
    lowered = (user_message or '').lower().strip()
    context = analyze_conversation_context(history)
    has_history = len(history or []) > 1
    tone = context["emotional_tone"]

    if tone == 'frustrated':
        return supportive_response(context, has_history)
    if tone == 'curious':
        return exploratory_response(context, has_history)
    if tone == 'confused':
        return clarification_response(context, has_history)
    if tone == 'confident':
        return advanced_response(context, has_history)

    if any(k in lowered for k in ('not working', 'error', 'broken')):
        return TECHNICAL_DIFFICULTY

    if context["topics"]:
        return contextual_subject_response(context)

    level = context["user_knowledge_level"]
    if re.search(r"\b(math|calculus|algebra|geometry|physics|chemistry|biology|science)\b", lowered):
        return subject_response('mathematics and science', has_history, level)
    if re.search(r"\b(code|coding|programming|javascript|python|react|computer|software)\b", lowered):
        return subject_response('programming and technology', has_history, level)
    if re.search(r"\b(write|writing|essay|grammar|literature|english|language)\b", lowered):
        return subject_response('language and writing', has_history, level)
    if re.search(r"\b(study|learn|homework|assignment|test|exam|help)\b", lowered):
        return study_help_response(context, has_history)

    if GREETING.match(lowered):
        if has_history:
            return "I see you're back! What's on your mind today?"
        return "What brings you here? I'm curious about what you'd like to explore."

    if '?' in lowered:
        return question_response(context, has_history)
    return default_response(context, has_history)
