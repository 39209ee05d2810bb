"""
All task constants. No imports from other crt modules.
All time values are in seconds unless the name includes a unit suffix.
"""

# Section order
CRT_ORDER: list[str] = ["CRT1", "CRT2", "CRT3", "CRT4", "CRT5", "CRT6", "CRT7", "CRT8"]
STROOP: str = "STROOP"

# Trial counts
CRT_TRIALS: int = 40
STROOP_NOMINAL_TRIALS: int = 60
STROOP_POOL_FACTOR: int = 4    # pool size = nominal * factor; the deadline ends the section first
TOTAL_NOMINAL_TRIALS: int = len(CRT_ORDER) * CRT_TRIALS + STROOP_NOMINAL_TRIALS

# Response labels per CRT section: (left, right)
CRT_LABELS: dict[str, tuple[str, str]] = {
    "CRT1": ("Ургамал", "Амьтан"),
    "CRT2": ("Нэг үетэй", "Хоёр үетэй"),
    "CRT3": ("Тэгш", "Сондгой"),
    "CRT4": ("500-с бага", "500-с их"),
    "CRT5": ("Дээш чиглэсэн", "Доош чиглэсэн"),
    "CRT6": ("Дээд", "Доод"),
    "CRT7": ("Холбогдсон", "Холбогдоогүй"),
    "CRT8": ("Босоо тэнхлэг", "Хэвтээ тэнхлэг"),
}

# Lexical word lists (CRT1, CRT2)
CRT1_PLANTS: list[str] = [
    "Нарс", "Хус", "Гацуур", "Бургас", "Улиас", "Хайлаас", "Сөөг", "Багваахай", "Наранцэцэг", "Төмс",
    "Сонгино", "Сармис", "Буудай", "Арвай", "Овъёос", "Хөвөн", "Улаанбуудай", "Ногоон вандуй", "Лууван",
    "Өргөст хэмх",
]
CRT1_ANIMALS: list[str] = [
    "Нохой", "Муур", "Үхэр", "Хонь", "Ямаа", "Тэмээ", "Морь", "Буга", "Чоно", "Үнэг",
    "Баавгай", "Туулай", "Хулгана", "Бүргэд", "Тахиа", "Гахай", "Мэлхий", "Загас", "Яст мэлхий", "Арслан",
]
CRT2_ONE_SYLLABLE: list[str] = [
    "нар", "сар", "уул", "гол", "шар", "хар", "цас", "зам", "аж", "хүн",
    "ном", "гар", "морь", "буу", "сум", "шаг", "бор", "шүд", "ус", "мод",
]
CRT2_TWO_SYLLABLE: list[str] = [
    "нохой", "мууртай", "цагаан", "бороо", "хавар", "өвөл", "сайхан", "хичээл", "цонхоо", "далай",
    "цаасан", "утас", "ширээ", "гэрэл", "жолоо", "сурагч", "засал", "хөгжим", "ногоо", "сүүдэр",
]

# Numeric tasks (CRT3, CRT4)
NUMBER_MIN: int = 100
NUMBER_MAX: int = 999
MAGNITUDE_THRESHOLD: int = 500

# Arrow angle ranges in degrees, [start, end) (CRT5, CRT6)
UP_RANGES_DEG: list[tuple[float, float]] = [(300.0, 360.0), (0.0, 60.0)]
DOWN_RANGES_DEG: list[tuple[float, float]] = [(120.0, 240.0)]
FULL_CIRCLE_DEG: list[tuple[float, float]] = [(0.0, 360.0)]

# Grid tasks (CRT7, CRT8)
GRID_MIN_FILLED: int = 3
GRID_MAX_FILLED: int = 6
SYMMETRY_MIN_FILLED: int = 2
AXIS_VARIANT: str = "row_column"     # "row_column" | "mirror"

# Stroop palette: (name, display colour)
STROOP_COLORS: list[tuple[str, str]] = [
    ("Улаан", "#ff4d4d"),
    ("Цэнхэр", "#4d7cff"),
    ("Ногоон", "#4dff88"),
    ("Шар", "#ffd24d"),
]

# Rejection sampling guard
MAX_SAMPLING_ATTEMPTS: int = 100_000
MAX_TOTAL_SAMPLING_ATTEMPTS: int = 1_000_000   # hard stop, predicate misses included

# Timers (milliseconds)
PRESENTATION_DELAY_MS: int = 50
INTER_SECTION_PAUSE_MS: int = 1000
FINAL_CRT_PAUSE_MS: int = 700
BREAK_TICK_MS: int = 1000
BREAK_TICKS: int = 10
STROOP_TICK_MS: int = 200
FEEDBACK_FLASH_MS: int = 150

STROOP_DURATION_S: float = 60.0

# Session log
FORMAT_VERSION: str = "1.0.0"
HISTORY_KEY: str = "crt_stroop_history_v1"
PARTICIPANT_KEY: str = "participant_id"
PLACEHOLDER_PARTICIPANT_ID: str = "00000000-0000-0000-0000-000000000000"

# Aggregate submission
SUBMIT_URL: str = "http://localhost:3000"
SUBMIT_TIMEOUT_S: float = 5.0

# Keyboard layout
KEYS_CRT: dict[str, str] = {"left": "left", "right": "right"}
KEYS_STROOP: list[str] = ["1", "2", "3", "4"]
KEY_CONTINUE: str = "space"
KEY_QUIT: str = "escape"

# Intro text per section
INSTRUCTIONS: dict[str, str] = {
    "CRT1": "CRT.1: Үг → Ургамал эсвэл Амьтан",
    "CRT2": "CRT.2: Үг → Нэг үетэй эсвэл Хоёр үетэй",
    "CRT3": "CRT.3: 3 оронтой тоо → Тэгш эсвэл Сондгой",
    "CRT4": "CRT.4: 3 оронтой тоо → 500-с бага эсвэл 500-с их",
    "CRT5": "CRT.5: Сум → Дээш чиглэсэн эсвэл Доош чиглэсэн",
    "CRT6": "CRT.6: Сум → Дэлгэцийн Дээд эсвэл Доод хагас",
    "CRT7": "CRT.7: 3x3 тор → Холбогдсон эсвэл Холбогдоогүй",
    "CRT8": "CRT.8: 3x3 тор → Босоо тэнхлэг эсвэл Хэвтээ тэнхлэг",
    "STROOP": "Stroop: үгийн өнгийг сонгоно уу (үгний утгыг бус). 1-4 товч. 60 секунд.",
}
INSTRUCTIONS_FOOTER: str = "Үргэлжлүүлэх бол SPACE дарна уу."
