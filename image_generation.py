# image_generation.py
import os, logging, random, time
from urllib.parse import quote, urlencode

import requests

from validation import validate_text_input

logger = logging.getLogger(__name__)

TOGETHER_URL = "https://api.together.xyz/v1/images/generations"
TOGETHER_MODEL = "black-forest-labs/FLUX.1-schnell-Free"
POLLINATIONS_URL = "https://image.pollinations.ai/prompt/"

STYLE_PROMPTS = {
    'realistic': 'photorealistic, ultra-high quality, sharp focus, professional photography, 8K resolution, perfect lighting, detailed textures',
    'artistic': 'artistic masterpiece, museum quality, fine art, beautiful composition, professional artwork, intricate details, perfect color harmony',
    'anime': 'high-quality anime art, studio-grade animation, detailed character design, vibrant colors, professional manga style, crisp lineart',
    'cartoon': 'professional cartoon illustration, vibrant colors, clean vector art, polished animation style, polished design',
    'abstract': 'modern abstract art, contemporary style, museum-worthy, sophisticated color palette, artistic expression, avant-garde',
    'cyberpunk': 'cyberpunk aesthetic, neon-lit futuristic cityscape, high-tech sci-fi, dramatic lighting, cinematic quality, dystopian atmosphere',
    'portrait': 'professional portrait photography, studio lighting, sharp focus, detailed facial features, high-end fashion photography style',
    'landscape': 'breathtaking landscape photography, golden hour lighting, ultra-wide vista, documentary quality, pristine nature',
    'minimalist': 'clean minimalist design, sophisticated simplicity, elegant composition, modern aesthetic, premium quality',
    'vintage': 'vintage aesthetic, classic photography style, retro charm, film grain texture, nostalgic atmosphere, timeless appeal',
}

QUALITY_ENHANCERS = 'masterpiece, best quality, ultra-detailed, professional grade, award-winning'
TECHNICAL_SPECS = '8K resolution, perfect composition, optimal lighting'

ASPECT_RATIOS = {
    '1:1': (1024, 1024),
    '16:9': (1344, 768),
    '9:16': (768, 1344),
    '4:3': (1152, 896),
}

QUALITY_TERMS = ['high quality', 'detailed', 'professional', '4k', '8k', 'hd']


def build_enhanced_prompt(prompt, style='realistic'):
    style_prompt = STYLE_PROMPTS.get(style, STYLE_PROMPTS['realistic'])
    return f"{prompt}, {style_prompt}, {QUALITY_ENHANCERS}, {TECHNICAL_SPECS}"


def dimensions_for(aspect_ratio):
    return ASPECT_RATIOS.get(aspect_ratio, ASPECT_RATIOS['1:1'])


def pollinations_url(prompt, width, height, **extra) -> str:
    params = {"width": width, "height": height}
    params.update(extra)
    return f"{POLLINATIONS_URL}{quote(prompt, safe='')}?{urlencode(params)}"


def generate_with_together(prompt, width, height):
    """Call Together's FLUX endpoint and return the image URL."""
    response = requests.post(
        TOGETHER_URL,
        headers={"Authorization": f"Bearer {os.environ.get('TOGETHER_API_KEY')}"},
        json={
            "model": TOGETHER_MODEL,
            "prompt": prompt,
            "width": width,
            "height": height,
            "steps": 6,
            "n": 1,
            "response_format": "url",
            "seed": random.randint(0, 999999),
            "guidance_scale": 7.5,
        },
        timeout=60,
    )
    response.raise_for_status()
    data = response.json().get('data') or []
    if not data or not data[0].get('url'):
        raise ValueError("Invalid response from Together AI")
    return data[0]['url']


def generate_image(prompt, style='realistic', aspect_ratio='1:1'):
    """Generate an image for the studio endpoint.

    Together FLUX is used when a key is configured; otherwise, or when it
    fails, the reply is a Pollinations URL that renders on first load.
    """
    if style not in STYLE_PROMPTS:
        style = 'realistic'
    if aspect_ratio not in ASPECT_RATIOS:
        aspect_ratio = '1:1'
    enhanced = build_enhanced_prompt(prompt, style)
    width, height = dimensions_for(aspect_ratio)

    if os.environ.get('TOGETHER_API_KEY'):
        try:
            image_url = generate_with_together(enhanced, width, height)
            logger.info("Image generated with Together AI")
            return {
                "success": True,
                "imageUrl": image_url,
                "model": "FLUX.1-schnell (Together AI)",
                "style": style,
                "aspectRatio": aspect_ratio,
                "watermarkFree": True,
            }
        except (requests.RequestException, ValueError) as e:
            logger.warning(f"Together AI failed, using Pollinations: {e}")

    return {
        "success": True,
        "imageUrl": pollinations_url(enhanced, width, height, nologo="true", enhance="true"),
        "model": "Pollinations AI (Free)",
        "style": style,
        "aspectRatio": aspect_ratio,
        "watermarkFree": True,
        "note": "Generated using Pollinations AI - add TOGETHER_API_KEY for FLUX model",
    }


def enhance_prompt(prompt: str) -> str:
    enhanced = prompt.strip()
    lowered = enhanced.lower()
    if not any(term in lowered for term in QUALITY_TERMS):
        enhanced += ', high quality, detailed'
    if any(term in lowered for term in ('art', 'paint', 'draw')) and 'style' not in lowered:
        enhanced += ', professional art style'
    return enhanced


def generate_chat_image(prompt, width=1024, height=1024, model='flux', seed=None):
    """Image for an in-chat request; returns the Pollinations URL without fetching it."""
    start = time.time()
    if not validate_text_input(prompt)["is_valid"]:
        return {"success": False, "error": "Invalid or inappropriate prompt"}
    if seed is None:
        seed = random.randint(0, 999999)
    url = pollinations_url(enhance_prompt(prompt), width, height, seed=seed, model=model, enhance="true")
    return {
        "success": True,
        "data": {
            "image_url": url,
            "model_used": model,
            "processing_time": int((time.time() - start) * 1000),
        },
    }
