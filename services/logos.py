import logging
from datetime import datetime

from models import FontInfo, Logo

logger = logging.getLogger(__name__)

LOGOS = "logos"
FONTS = "fonts"

# Fields an update request may set
LOGO_FIELDS = (
    "type", "text", "image_url", "font_family", "font_size", "color",
    "font_weight", "text_effect", "layout", "spacing", "alignment",
    "width", "height",
)

DEFAULT_FONTS = [
    # Chinese
    ("SimSun", "宋体", "chinese"),
    ("SimHei", "黑体", "chinese"),
    ("Microsoft YaHei", "微软雅黑", "chinese"),
    ("KaiTi", "楷体", "chinese"),
    ("FangSong", "仿宋", "chinese"),
    ("LiSu", "隶书", "chinese"),
    ("YouYuan", "幼圆", "chinese"),
    ("STXihei", "华文细黑", "chinese"),
    # English
    ("Arial", "Arial", "english"),
    ("Helvetica", "Helvetica", "english"),
    ("Times New Roman", "Times New Roman", "english"),
    ("Georgia", "Georgia", "english"),
    ("Verdana", "Verdana", "english"),
    ("Trebuchet MS", "Trebuchet MS", "english"),
    ("Courier New", "Courier New", "english"),
    ("Impact", "Impact", "english"),
    ("Comic Sans MS", "Comic Sans MS", "english"),
    ("Tahoma", "Tahoma", "english"),
    # Artistic
    ("Brush Script MT", "毛笔字体", "artistic"),
    ("Lucida Handwriting", "手写体", "artistic"),
    ("Chiller", "恐怖字体", "artistic"),
    ("Jokerman", "小丑字体", "artistic"),
]


def default_logo():
    now = datetime.now()
    return Logo(
        id=1,
        type="text",
        text="SheIn",
        font_family="Arial",
        font_size=24,
        color="#007AFF",
        font_weight=700,
        width=150,
        height=50,
        is_active=True,
        created_time=now,
        updated_time=now,
    )


class LogoService:
    """Keeps exactly one active branding record among the stored history."""

    def __init__(self, store):
        self.store = store

    def get_current(self):
        for logo in self.store.load(LOGOS, Logo):
            if logo.is_active:
                return logo
        return default_logo()

    def update(self, request):
        """
        Store a new active logo built from ``request`` (snake_case or camelCase
        keys) and deactivate every earlier record.
        """
        incoming = Logo.from_dict(request)
        values = {name: getattr(incoming, name) for name in LOGO_FIELDS}

        with self.store.lock(LOGOS):
            logos = self.store.load(LOGOS, Logo)
            for logo in logos:
                logo.is_active = False
            now = datetime.now()
            new_logo = Logo(
                id=self.store.next_id(LOGOS),
                is_active=True,
                created_time=now,
                updated_time=now,
                **values,
            )
            logos.append(new_logo)
            self.store.save(LOGOS, logos)

        logger.info(f"Logo {new_logo.id} is now active")
        return new_logo

    def list_fonts(self):
        with self.store.lock(FONTS):
            fonts = self.store.load(FONTS, FontInfo)
            if not fonts:
                fonts = [
                    FontInfo(name=name, display_name=display, category=category)
                    for name, display, category in DEFAULT_FONTS
                ]
                self.store.save(FONTS, fonts)
                logger.info("Seeded default font catalogue")
        return [f for f in fonts if f.is_available]

    def history(self):
        return sorted(
            self.store.load(LOGOS, Logo),
            key=lambda logo: (logo.updated_time or datetime.min, logo.id),
            reverse=True,
        )
