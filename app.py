# app.py
from flask import Flask, request, jsonify, session
from flask_cors import CORS
from sqlalchemy.exc import SQLAlchemyError
import os, logging, time
from collections import Counter
from datetime import datetime, timezone

import chat_service, empathy, image_generation, quiz, translation, tutor, vision
from models import db, Conversation, UsageEvent, default_title, valid_messages
from rate_limit import rate_limited

logging.basicConfig(level=logging.INFO)
logger = logging.getLogger(__name__)

START_TIME = datetime.now(timezone.utc)

app = Flask(__name__)
app.secret_key = os.environ.get('SECRET_KEY', 'dev-secret-change-me')

database_url = os.environ.get('DATABASE_URL', 'sqlite:///gawin.db')
if database_url.startswith('postgres://'):
    database_url = database_url.replace('postgres://', 'postgresql://', 1)
app.config['SQLALCHEMY_DATABASE_URI'] = database_url
db.init_app(app)
with app.app_context():
    db.create_all()

# CORS setup
raw_frontend_origins = os.environ.get('FRONTEND_ORIGIN', '')
allowed_origins = [o.strip().lstrip('=') for o in raw_frontend_origins.split(',') if o.strip()]
if not allowed_origins:
    allowed_origins = ["http://localhost:3000", "http://127.0.0.1:3000"]

cors_config = {
    r"/*": {
        "origins": allowed_origins,
        "methods": ["GET", "POST", "PUT", "DELETE", "OPTIONS"],
        "allow_headers": ["Content-Type", "Authorization"],
        "supports_credentials": True,
    }
}
CORS(app, resources=cors_config, supports_credentials=True)


def record_usage(action, feature=None, details=None, user_id=None, session_id=None):
    try:
        db.session.add(UsageEvent(user_id=user_id, action=action, feature=feature,
                                  details=details or {}, session_id=session_id))
        db.session.commit()
    except SQLAlchemyError as e:
        db.session.rollback()
        logger.error(f"Usage logging error: {e}")


def _body():
    return request.get_json(silent=True) or {}


# ============ SERVICE ============

@app.route('/health')
def health():
    return jsonify({"status": "ok"}), 200


@app.route('/api/version', methods=['GET'])
def version():
    build_time = os.environ.get('BUILD_TIME')
    info = {
        "version": os.environ.get('GIT_COMMIT_SHA') or build_time or str(int(START_TIME.timestamp() * 1000)),
        "timestamp": int(time.time() * 1000),
        "buildTime": build_time or START_TIME.isoformat(),
        "environment": os.environ.get('FLASK_ENV', 'development'),
        "requestTime": datetime.now(timezone.utc).isoformat(),
    }
    logger.info(f"Version check: {info['version']} ({info['environment']})")
    response = jsonify(info)
    response.headers['Cache-Control'] = 'no-cache, no-store, must-revalidate'
    response.headers['Pragma'] = 'no-cache'
    response.headers['Expires'] = '0'
    return response


# ============ CHAT ============

@app.route('/api/groq', methods=['GET', 'POST', 'OPTIONS'])
@rate_limited
def groq_chat():
    if request.method == 'OPTIONS': return '', 200
    if request.method == 'GET':
        try:
            return jsonify(chat_service.service_status()), 200
        except Exception as e:
            logger.error(f"Health check error: {e}")
            return jsonify({"success": False, "error": "Health check failed"}), 500

    data = _body()
    try:
        payload, status = chat_service.process_chat_request(data)
    except Exception as e:
        logger.error(f"Chat route error: {e}")
        return jsonify({"success": False, "error": "Internal server error"}), 500

    if status == 200 and payload.get('success'):
        record_usage('chat', payload.get('model') or 'synthetic', payload.get('usage'),
                     user_id=data.get('user_id'), session_id=data.get('session_id'))
    return jsonify(payload), status


# ============ TRANSLATION ============

@app.route('/api/translate', methods=['GET', 'POST', 'OPTIONS'])
@rate_limited
def translate():
    if request.method == 'OPTIONS': return '', 200
    if request.method == 'GET':
        languages = sorted(translation.SUPPORTED_LANGUAGES, key=lambda l: l['priority'])
        return jsonify({"success": True, "languages": languages, "total": len(languages)}), 200

    data = _body()
    text = data.get('text') or ''
    target = data.get('target')
    if not isinstance(text, str) or not text.strip():
        return jsonify({"success": False, "error": "Text is required for translation"}), 400
    if not target:
        return jsonify({"success": False, "error": "Target language is required"}), 400

    result = translation.translate(text, target, data.get('source'), bool(data.get('detectOnly')))
    record_usage('translate', target, {"confidence": result['confidence']}, user_id=data.get('user_id'))
    return jsonify(result), 200


# ============ QUIZ ============

@app.route('/api/advanced-quiz', methods=['GET', 'POST', 'OPTIONS'])
@rate_limited
def advanced_quiz():
    if request.method == 'OPTIONS': return '', 200
    if request.method == 'GET':
        return jsonify({
            "status": "Advanced Quiz Generation API is running",
            "description": "Mastery-based quiz generation aligned with international educational standards",
            "features": quiz.FEATURES,
            "standards": quiz.STANDARDS,
        }), 200

    data = _body()
    topic = (data.get('topic') or '').strip() if isinstance(data.get('topic'), str) else ''
    if not topic:
        return jsonify({"success": False, "error": "Topic is required for quiz generation"}), 400
    if not os.environ.get('GROQ_API_KEY'):
        return jsonify({"success": False, "error": "Quiz generation service configuration missing"}), 500

    try:
        question_count = int(data.get('questionCount') or 10)
        time_limit = int(data.get('timeLimit') or 15)
    except (TypeError, ValueError):
        return jsonify({"success": False, "error": "questionCount and timeLimit must be numbers"}), 400

    try:
        result = quiz.generate_quiz(topic, question_count, time_limit,
                                    data.get('educationalLevel') or 'secondary', data.get('focusAreas'))
    except quiz.QuizGenerationError:
        return jsonify({"success": False,
                        "error": "Advanced quiz generation service temporarily unavailable"}), 500

    record_usage('quiz', topic, {"questions": len(result['questions'])}, user_id=data.get('user_id'))
    return jsonify({"success": True, "quiz": result}), 200


@app.route('/api/advanced-quiz/grade', methods=['POST', 'OPTIONS'])
def grade_quiz():
    if request.method == 'OPTIONS': return '', 200
    data = _body()
    if not isinstance(data.get('quiz'), dict) or not isinstance(data.get('answers') or {}, dict):
        return jsonify({"success": False, "error": "quiz and answers are required"}), 400
    return jsonify({"success": True, **quiz.grade_quiz(data['quiz'], data.get('answers'))}), 200


# ============ IMAGES ============

@app.route('/api/image-generation', methods=['GET', 'POST', 'OPTIONS'])
@rate_limited
def image_generation_route():
    if request.method == 'OPTIONS': return '', 200
    if request.method == 'GET':
        return jsonify({
            "status": "Image Generation API is running",
            "description": "Watermark-free AI image generation using FLUX model",
            "features": ["Multiple artistic styles", "Various aspect ratios", "No watermarks",
                         "High quality output", "Fast generation"],
            "styles": list(image_generation.STYLE_PROMPTS),
            "aspectRatios": list(image_generation.ASPECT_RATIOS),
        }), 200

    data = _body()
    prompt = data.get('prompt')
    if not isinstance(prompt, str) or not prompt.strip():
        return jsonify({"success": False, "error": "Prompt is required"}), 400

    result = image_generation.generate_image(prompt.strip(), data.get('style') or 'realistic',
                                             data.get('aspectRatio') or '1:1')
    record_usage('image', result['model'], {"style": result['style']}, user_id=data.get('user_id'))
    return jsonify(result), 200


# ============ EMPATHY ============

@app.route('/api/empathy/analyze', methods=['POST', 'OPTIONS'])
def empathy_analyze():
    if request.method == 'OPTIONS': return '', 200
    data = _body()
    text = data.get('text')
    if not isinstance(text, str) or not text.strip():
        return jsonify({"success": False, "error": "text is required"}), 400

    user_id = str(data.get('user_id') or 'anonymous')
    analysis = empathy.engine.analyze(user_id, text)
    if isinstance(data.get('response'), str):
        analysis['enhanced_response'] = empathy.enhance_response(data['response'], analysis['empathy'])
    return jsonify({"success": True, **analysis}), 200


@app.route('/api/empathy/sync', methods=['POST', 'OPTIONS'])
def empathy_sync():
    if request.method == 'OPTIONS': return '', 200
    perspectives = _body().get('perspectives')
    if not isinstance(perspectives, list) or not perspectives:
        return jsonify({"success": False, "error": "perspectives must be a non-empty list"}), 400
    errors = [f"perspective {i}: {err}" for i, p in enumerate(perspectives)
              for err in empathy.validate_perspective(p)]
    if errors:
        return jsonify({"success": False, "error": "Invalid perspectives", "details": errors}), 400
    return jsonify({"success": True, **empathy.sync_perspectives(perspectives)}), 200


# ============ VISION ============

@app.route('/api/vision/analyze', methods=['POST', 'OPTIONS'])
def vision_analyze():
    if request.method == 'OPTIONS': return '', 200
    data = _body()
    try:
        analysis = vision.analyze_image(data.get('image'), data.get('type') or 'camera', memory=vision.memory)
    except vision.VisionInputError as e:
        return jsonify({"success": False, "error": str(e)}), 400
    record_usage('vision', analysis['type'], {"objects": len(analysis['objects'])}, user_id=data.get('user_id'))
    return jsonify({"success": True, "analysis": analysis}), 200


@app.route('/api/vision/history', methods=['GET'])
def vision_history():
    return jsonify({"success": True, "history": vision.memory.get_history()}), 200


@app.route('/api/vision/memory', methods=['GET'])
def vision_memory():
    return jsonify({
        "success": True,
        "seen_objects": sorted(vision.memory.seen_objects),
        "visual_memory": vision.memory.stats(),
    }), 200


# ============ TUTOR ============

def _tutor_reply(func, *args):
    try:
        result = func(*args)
    except tutor.TutorError as e:
        return jsonify({"success": False, "error": str(e)}), e.status
    return jsonify(result), 200


@app.route('/api/tutor/<subject>/lesson', methods=['POST', 'OPTIONS'])
@rate_limited
def tutor_lesson(subject):
    if request.method == 'OPTIONS': return '', 200
    data = _body()
    return _tutor_reply(tutor.start_lesson, subject, data.get('lesson'), data.get('topic') or '')


@app.route('/api/tutor/<subject>/check', methods=['POST', 'OPTIONS'])
@rate_limited
def tutor_check(subject):
    if request.method == 'OPTIONS': return '', 200
    data = _body()
    text = data.get('problem') if subject == 'math' else data.get('text')
    return _tutor_reply(tutor.check_work, subject, text, data.get('history'))


@app.route('/api/tutor/<subject>/ask', methods=['POST', 'OPTIONS'])
@rate_limited
def tutor_ask(subject):
    if request.method == 'OPTIONS': return '', 200
    data = _body()
    return _tutor_reply(tutor.ask_tutor, subject, data.get('lesson'), data.get('question'), data.get('history'))


@app.route('/api/tutor/math/practice', methods=['POST', 'OPTIONS'])
@rate_limited
def math_practice():
    if request.method == 'OPTIONS': return '', 200
    concept = _body().get('concept')
    if not isinstance(concept, str) or not concept.strip():
        return jsonify({"success": False, "error": "concept is required"}), 400

    allow_harder = not tutor.wants_no_harder(concept)
    try:
        problems = tutor.generate_practice_set(concept, allow_harder)
    except tutor.TutorError as e:
        return jsonify({"success": False, "error": str(e)}), e.status

    if problems:
        session['math_practice'] = {'concept': concept, 'problems': problems, 'allow_harder': allow_harder}
    else:
        session.pop('math_practice', None)
    return jsonify({
        "answer": tutor.practice_intro(problems),
        "problems": [{"number": p['number'], "question": p['question']} for p in problems],
        "allow_harder": allow_harder,
    }), 200


@app.route('/api/tutor/math/practice/check', methods=['POST', 'OPTIONS'])
def math_practice_check():
    if request.method == 'OPTIONS': return '', 200
    practice = session.get('math_practice') or {}
    problems = practice.get('problems') or []
    if not problems:
        return jsonify({"success": False, "error": "No active practice set. Request problems first."}), 400
    return jsonify(tutor.grade_practice(problems, _body().get('answers'))), 200


# ============ CONVERSATIONS ============

@app.route('/api/conversations', methods=['GET', 'POST', 'OPTIONS'])
def conversations():
    if request.method == 'OPTIONS': return '', 200
    if request.method == 'GET':
        query = Conversation.query
        user_id = request.args.get('user_id')
        if user_id:
            query = query.filter_by(user_id=user_id)
        rows = query.order_by(Conversation.updated_at.desc(), Conversation.id.desc()).all()
        return jsonify({"success": True, "conversations": [c.summary() for c in rows]}), 200

    data = _body()
    messages = data.get('messages') or []
    if not valid_messages(messages):
        return jsonify({"success": False, "error": "messages must be a list of {role, content}"}), 400
    try:
        tokens = int(data.get('tokens') or 0)
    except (TypeError, ValueError):
        return jsonify({"success": False, "error": "tokens must be a number"}), 400

    conversation = Conversation(
        user_id=data.get('user_id'),
        title=(data['title'].strip() if isinstance(data.get('title'), str) else '') or default_title(messages),
        messages=messages,
        model_used=data.get('model_used'),
        total_tokens=tokens,
    )
    db.session.add(conversation)
    db.session.commit()
    logger.info(f"Conversation {conversation.id} created for {conversation.user_id}")
    return jsonify({"success": True, "conversation": conversation.to_dict()}), 201


@app.route('/api/conversations/<int:conversation_id>', methods=['GET', 'PUT', 'DELETE', 'OPTIONS'])
def conversation_detail(conversation_id):
    if request.method == 'OPTIONS': return '', 200
    conversation = db.session.get(Conversation, conversation_id)
    if conversation is None:
        return jsonify({"success": False, "error": "Conversation not found"}), 404

    if request.method == 'GET':
        return jsonify({"success": True, "conversation": conversation.to_dict()}), 200

    if request.method == 'DELETE':
        db.session.delete(conversation)
        db.session.commit()
        return jsonify({"success": True}), 200

    data = _body()
    if 'messages' in data and not valid_messages(data['messages']):
        return jsonify({"success": False, "error": "messages must be a list of {role, content}"}), 400
    try:
        tokens = int(data.get('tokens') or 0)
    except (TypeError, ValueError):
        return jsonify({"success": False, "error": "tokens must be a number"}), 400

    if 'messages' in data:
        conversation.messages = data['messages']
    if isinstance(data.get('title'), str) and data['title'].strip():
        conversation.title = data['title'].strip()
    if data.get('model_used'):
        conversation.model_used = data['model_used']
    conversation.total_tokens = (conversation.total_tokens or 0) + tokens
    db.session.commit()
    return jsonify({"success": True, "conversation": conversation.to_dict()}), 200


@app.route('/api/usage', methods=['GET'])
def usage():
    query = UsageEvent.query
    user_id = request.args.get('user_id')
    if user_id:
        query = query.filter_by(user_id=user_id)
    counts = Counter(event.action for event in query.all())
    return jsonify({"success": True, "user_id": user_id, "usage": dict(counts),
                    "total": sum(counts.values())}), 200


if __name__ == '__main__':
    port = int(os.environ.get('PORT', 5000))
    app.run(host='0.0.0.0', port=port)
