# vision.py
import base64, binascii, io, logging, threading
from datetime import datetime

from PIL import Image, ImageChops, ImageFilter, ImageStat, UnidentifiedImageError

logger = logging.getLogger(__name__)

MAX_SIZE = (640, 480)
REFERENCE_PIXELS = 640 * 480
HISTORY_LIMIT = 10

CATEGORY_COLORS = {
    'person': '#ff6b6b',
    'face': '#4ecdc4',
    'object': '#45b7d1',
    'text': '#96ceb4',
    'scene': '#ffeaa7',
}


class VisionInputError(ValueError):
    pass


def decode_image(data):
    """Decode a data: URL or bare base64 string into an RGB image no larger than 640x480."""
    if not data or not isinstance(data, str):
        raise VisionInputError("Image data is required")
    if data.startswith('data:'):
        data = data.split(',', 1)[-1]
    try:
        raw = base64.b64decode(data, validate=False)
        img = Image.open(io.BytesIO(raw))
        img.load()
    except (binascii.Error, UnidentifiedImageError, OSError) as e:
        raise VisionInputError(f"Could not decode image: {e}") from e
    img = img.convert('RGB')
    if img.size[0] > MAX_SIZE[0] or img.size[1] > MAX_SIZE[1]:
        img.thumbnail(MAX_SIZE, Image.LANCZOS)
    return img


def calculate_brightness(img) -> float:
    return sum(ImageStat.Stat(img).mean) / 3


def lighting_for(brightness) -> str:
    if brightness > 180: return 'bright'
    if brightness > 100: return 'moderate'
    if brightness > 40: return 'dim'
    return 'dark'


def main_colors(img):
    r, g, b = ImageStat.Stat(img).mean
    colors = []
    if r > 200 and g > 200 and b > 200:
        colors.append('white')
    elif r < 50 and g < 50 and b < 50:
        colors.append('black')
    dominant = max((('red', r), ('green', g), ('blue', b)), key=lambda kv: kv[1])[0]
    colors.append(dominant)
    return colors


def _is_skin(pixel) -> bool:
    r, g, b = pixel
    return (r > 95 and g > 40 and b > 20 and max(pixel) - min(pixel) > 15
            and abs(r - g) > 15 and r > g and r > b)


def skin_mask(img):
    mask = Image.new('L', img.size)
    mask.putdata([255 if _is_skin(p) else 0 for p in img.getdata()])
    return mask


def _fraction_above(gray, threshold) -> float:
    hist = gray.histogram()
    total = sum(hist)
    return sum(hist[threshold + 1:]) / total if total else 0.0


def edge_density(img) -> float:
    return _fraction_above(img.convert('L').filter(ImageFilter.FIND_EDGES), 40)


def has_text_content(img) -> bool:
    """Text shows up as many sharp brightness jumps between horizontal neighbours."""
    gray = img.convert('L')
    width, height = gray.size
    if width < 2:
        return False
    shifted = ImageChops.offset(gray, -1, 0)
    diff = ImageChops.difference(gray, shifted).crop((0, 0, width - 1, height))
    jumps = sum(diff.histogram()[51:])
    return jumps > 1000 * (width * height / REFERENCE_PIXELS)


def time_of_day(now=None) -> str:
    hour = (now or datetime.now()).hour
    if 6 <= hour < 12: return 'morning'
    if 12 <= hour < 17: return 'afternoon'
    if 17 <= hour < 21: return 'evening'
    return 'night'


def _bbox(box):
    left, top, right, bottom = box
    return [left, top, right - left, bottom - top]


def detect(img, kind, metrics):
    objects = []
    faces = {"is_present": False, "count": 0, "emotions": {}}
    width, height = img.size

    if kind == 'camera':
        if metrics['brightness'] > 100 and metrics['skin_ratio'] >= 0.02:
            box = metrics.get('skin_box') or (0, 0, width, height)
            objects.append({"name": 'person', "confidence": round(min(0.95, 0.6 + metrics['skin_ratio']), 3),
                            "bbox": [0, box[1], width, height - box[1]], "category": 'person'})
        if metrics['skin_ratio'] >= 0.05:
            box = metrics.get('skin_box') or (0, 0, width, height)
            objects.append({"name": 'face', "confidence": 0.8, "bbox": _bbox(box), "category": 'face'})
            if metrics['brightness'] > 150:
                emotions = {"happy": 0.5, "neutral": 0.3, "focused": 0.2}
            else:
                emotions = {"neutral": 0.5, "focused": 0.3, "tired": 0.2}
            faces = {"is_present": True, "count": 1, "emotions": emotions}
    else:
        objects.append({"name": 'browser_window', "confidence": 0.85,
                        "bbox": [0, 0, width, height], "category": 'scene'})
        if metrics['has_text']:
            objects.append({"name": 'text_content', "confidence": 0.78,
                            "bbox": [0, 0, width, height], "category": 'text'})
        if metrics['edge_density'] > 0.15:
            objects.append({"name": 'busy_interface', "confidence": 0.6,
                            "bbox": [0, 0, width, height], "category": 'object'})
    return objects, faces


def dominant_emotion(faces):
    emotions = faces.get('emotions') or {}
    return max(emotions.items(), key=lambda kv: kv[1])[0] if emotions else 'neutral'


def describe(objects, faces, scene, kind):
    if kind == 'camera':
        if faces['is_present']:
            return (f"I can see you clearly! You appear to have a {dominant_emotion(faces)} expression. "
                    f"The lighting is {scene['lighting']} and you seem to be in a {scene['setting']}. "
                    f"I can detect {len(objects)} objects in total.")
        return (f"I can see the camera feed but I'm having difficulty detecting faces clearly. "
                f"The lighting appears {scene['lighting']} and I can make out {len(objects)} objects in the frame.")
    return (f"I can see your screen displaying what appears to be a {scene['setting']}. "
            f"I've identified {len(objects)} visual elements.")


def detailed_analysis(objects, faces, scene, kind):
    lines = ["Vision analysis completed:", "", f"Objects detected: {len(objects)}"]
    lines += [f"  • {o['name']} ({o['confidence'] * 100:.1f}% confidence)" for o in objects]
    if kind == 'camera' and faces['is_present']:
        lines += ["", "Face analysis:", f"  • Faces detected: {faces['count']}",
                  f"  • Primary emotion: {dominant_emotion(faces)}"]
    lines += ["", "Scene context:", f"  • Setting: {scene['setting']}",
              f"  • Lighting: {scene['lighting']}", f"  • Activity: {scene['activity']}"]
    return "\n".join(lines)


def recommendations_for(objects, faces, scene, kind):
    recs = []
    if kind == 'camera':
        if scene['lighting'] in ('dim', 'dark'):
            recs.append('Consider improving lighting for better face detection')
        if not faces['is_present']:
            recs.append('Position yourself in the camera frame for better interaction')
        if faces['emotions'].get('happy', 0) >= 0.5:
            recs.append('You seem happy! Great energy for learning')
    if len(objects) < 3:
        recs.append('Move camera for a better view of your environment')
    return recs


def overall_confidence(objects, faces) -> float:
    if not objects:
        return 0.3
    object_confidence = sum(o['confidence'] for o in objects) / len(objects)
    face_confidence = 0.9 if faces['is_present'] else 0.5
    return round((object_confidence + face_confidence) / 2, 4)


def vision_points(objects):
    return [{
        "x": o['bbox'][0], "y": o['bbox'][1], "width": o['bbox'][2], "height": o['bbox'][3],
        "label": f"{o['name']} ({o['confidence'] * 100:.0f}%)",
        "confidence": o['confidence'],
        "color": CATEGORY_COLORS.get(o['category'], '#ddd'),
    } for o in objects]


def measure(img):
    mask = skin_mask(img)
    return {
        "brightness": round(calculate_brightness(img), 2),
        "skin_ratio": round(_fraction_above(mask, 0), 4),
        "skin_box": mask.getbbox(),
        "edge_density": round(edge_density(img), 4),
        "colors": main_colors(img),
        "has_text": has_text_content(img),
    }


class VisionMemory:
    """Recent analyses plus what has been seen before."""

    def __init__(self, limit=HISTORY_LIMIT):
        self.limit = limit
        self.history = []
        self.seen_objects = set()
        self.visual_memory = {}
        self._lock = threading.Lock()

    def learn(self, objects, faces, scene):
        learnings = []
        with self._lock:
            for obj in objects:
                if obj['name'] not in self.seen_objects:
                    learnings.append(f"First time seeing: {obj['name']}")
                    self.seen_objects.add(obj['name'])
            key = f"{scene['setting']}_{scene['time_of_day']}_{'with_user' if faces['is_present'] else 'solo'}"
            self.visual_memory[key] = self.visual_memory.get(key, 0) + 1
            count = self.visual_memory[key]
        if faces['is_present']:
            learnings.append(f"User interaction session at {scene['time_of_day']} with {scene['lighting']} lighting")
        return learnings, f"Remembered: {key} ({count} times)"

    def remember(self, analysis):
        with self._lock:
            self.history.insert(0, analysis)
            del self.history[self.limit:]

    def get_history(self):
        with self._lock:
            return list(self.history)

    def stats(self):
        with self._lock:
            return dict(self.visual_memory)


def analyze_image(data, kind='camera', memory=None, now=None):
    """Run the pixel heuristics over one frame and record it in memory."""
    if kind not in ('camera', 'screen'):
        raise VisionInputError("type must be 'camera' or 'screen'")
    img = decode_image(data)
    metrics = measure(img)
    objects, faces = detect(img, kind, metrics)
    has_person = any(o['category'] == 'person' for o in objects)
    scene = {
        "setting": ('office' if has_person else 'room') if kind == 'camera' else 'digital_workspace',
        "lighting": lighting_for(metrics['brightness']),
        "time_of_day": time_of_day(now),
        "activity": 'video_chat' if kind == 'camera' else 'computer_work',
    }
    learnings, memory_note = [], ''
    if memory is not None:
        learnings, memory_note = memory.learn(objects, faces, scene)

    metrics.pop('skin_box', None)
    analysis = {
        "timestamp": (now or datetime.now()).isoformat(),
        "type": kind,
        "confidence": overall_confidence(objects, faces),
        "objects": objects,
        "faces": faces,
        "scene": scene,
        "description": describe(objects, faces, scene, kind),
        "detailed_analysis": detailed_analysis(objects, faces, scene, kind),
        "recommendations": recommendations_for(objects, faces, scene, kind),
        "new_learnings": learnings,
        "visual_memory": memory_note,
        "vision_points": vision_points(objects),
        "metrics": metrics,
    }
    if memory is not None:
        memory.remember(analysis)
    logger.info(f"Vision analysis ({kind}): {len(objects)} objects, lighting {scene['lighting']}")
    return analysis


memory = VisionMemory()
