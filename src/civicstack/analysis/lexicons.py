"""
Multilingual keyword lexicons for complaint emotion analysis.

English, Hindi and Tamil. Telugu and any other script fall back to the
English tables.
"""
from typing import Dict, List

EMOTION_AXES = ("anger", "urgency", "frustration", "concern")

EMOTION_KEYWORDS: Dict[str, Dict[str, List[str]]] = {
    "en": {
        "anger": ["angry", "furious", "mad", "irritated", "annoyed", "frustrated"],
        "urgency": [
            "urgent", "emergency", "immediate", "dangerous", "critical",
            "accident", "accidents", "death", "deaths", "fatal",
        ],
        "frustration": ["frustrated", "fed up", "tired", "disappointed"],
        "concern": ["worried", "concerned", "scared", "afraid", "anxious"],
    },
    "hi": {
        "anger": ["गुस्सा", "क्रोध", "नाराज़", "परेशान", "चिढ़", "खफा"],
        "urgency": [
            "तुरंत", "जल्दी", "आपातकाल", "खतरनाक", "अभी",
            "दुर्घटना", "दुर्घटनाएं", "मौत", "मौतें", "मृत्यु",
        ],
        "frustration": ["परेशान", "तंग", "दुखी", "चिंतित", "हैरान", "निराश"],
        "concern": ["चिंता", "डर", "फिक्र", "घबराहट", "बेचैनी", "चिंतित"],
    },
    "ta": {
        "anger": [
            "கோபம்", "எரிச்சல்", "சீற்றம்", "வெறுப்பு", "கோபமாக",
            "எரிச்சலாக", "கோபப்படுகிறேன்", "வெறுக்கிறேன்",
        ],
        "urgency": [
            "அவசரம்", "உடனடி", "ஆபத்து", "முக்கியம்", "அவசரமாக", "உடனடியாக",
            "ஆபத்தான", "அவசர", "மரணம்", "விபத்து", "உயிருக்கு ஆபத்து",
            "பெரிய", "மிகப்பெரிய", "பிரச்சனை",
        ],
        "frustration": [
            "வருத்தம்", "ஏமாற்றம்", "வருத்தமாக", "ஏமாற்றமாக",
            "கஷ்டம்", "துன்பம்", "வேதனை", "சோகம்",
        ],
        "concern": [
            "கவலை", "பயம்", "கவலையாக", "பயமாக", "வேவலை", "சிந்தனை",
            "பரிவு", "கவனம்", "உளைச்சல்", "நெருக்கடி", "தேவை", "சிக்கல்",
        ],
    },
}

# Urgency detector
URGENCY_WORDS = [
    # health / sanitation
    "death", "deaths", "died", "accident", "accidents", "emergency", "urgent",
    "critical", "dangerous", "disease", "illness", "sick", "health",
    "contamination", "pollution", "toxic", "suffocating", "stench", "smell",
    "dirty", "filthy", "overflow", "leakage", "burst",
    "मौत", "मौतें", "मृत्यु", "दुर्घटना", "दुर्घटनाएं", "आपातकाल", "खतरनाक", "गंभीर",
    "बीमारी", "रोग", "स्वास्थ्य", "प्रदूषण", "गंदगी", "बदबू", "दुर्गंध", "सड़न",
    "घुटन", "घुट रहे", "सीवेज", "नाली", "गंदा पानी", "रिसाव", "फूटना", "बहना",
    "मुश्किल", "कठिनाई", "परेशानी", "दिक्कत", "समस्या",
    # safety
    "सुरक्षा", "सुरक्षित", "असुरक्षित", "खतरा", "डर", "चिंता",
    "लड़कियों", "महिलाओं", "बच्चों", "रात", "अंधेरा", "सुनिश्चित", "नहीं",
    "மரணம்", "விபத்து", "ஆபத்து", "அவசரம்", "பாதுகாப்பு", "பயம்", "கவலை", "நோய்", "அசுத்தம்",
]

CRITICAL_HEALTH_PHRASES = [
    "घुट रहे हैं", "बदबू में", "गंदगी में", "सीवेज का", "गंदा पानी", "बीमार हो रहे",
    "स्वास्थ्य खराब", "सांस लेने में दिक्कत", "पेट की बीमारी", "डेंगू का खतरा",
    "मच्छर पैदा हो रहे",
    "suffocating in", "health emergency", "disease outbreak", "contaminated water",
    "breathing difficulty", "stomach illness", "mosquito breeding", "health hazard",
]

SAFETY_PHRASES = [
    "सुरक्षा सुनिश्चित नहीं", "लड़कियों की सुरक्षा", "रात के समय", "चलना मुश्किल",
    "women safety", "girls safety", "night time", "walking difficult",
]

# Concern / anger detectors
CONCERN_INDICATORS = [
    "worried", "concerned", "afraid", "scared", "nervous", "anxious", "trouble", "problem",
    "चिंतित", "परेशान", "डरा", "घबराया", "समस्या", "मुसीबत",
    "கவலை", "பயம", "பிரச்சினை",
]

ANGER_INDICATORS = [
    "angry", "furious", "outraged", "mad", "frustrated", "fed up", "enough",
    "गुस्सा", "क्रोध", "नाराज़", "बहुत परेशान",
    "கோபம்", "எரிச்சல்",
]

# Safety detector
CRITICAL_SAFETY_PHRASES = [
    "सुरक्षा सुनिश्चित नहीं", "लड़कियों की सुरक्षा", "महिलाओं की सुरक्षा",
    "रात के समय", "अंधेरे में", "चलना मुश्किल", "डर लगता है",
    "women safety", "girls safety", "ladies safety", "night time safety",
    "walking difficult", "afraid to walk", "security concern", "safety issue",
]

VULNERABLE_GROUPS = [
    "लड़कियों", "लड़कियां", "महिलाओं", "बच्चों", "बुजुर्गों",
    "girls", "women", "ladies", "children", "elderly",
]

TIME_OF_DAY_WORDS = ["रात", "अंधेरा", "night", "dark", "evening"]

# Category auto-detection patterns
CATEGORY_PATTERNS: Dict[str, List[str]] = {
    "sewage_overflow": [
        "सीवेज", "नाली", "गंदा पानी", "रिसाव", "घुट रहे", "बहना", "फूटना",
        "sewage", "drain overflow", "dirty water", "waste water", "burst pipe",
        "नाली बंद", "drain blocked", "drainage problem", "clogged drain",
        "கழிவுநீர்", "வடிகால்",
    ],
    "water_contamination": [
        "पानी की गुणवत्ता", "दूषित पानी", "पीने का पानी", "गंदा पानी",
        "water quality", "contaminated water", "drinking water", "dirty water",
        "पानी का प्रदूषण", "water pollution", "river pollution",
        "தண்ணீர் தரம்", "அசுத்த நீர்", "நீர் மாசு",
    ],
    "water_issue": [
        "पानी की आपूर्ति", "पानी नहीं", "water supply", "no water", "தண்ணீர் வராது",
    ],
    "water_leakage": ["leak", "leakage", "pipe leak", "पाइप लीक"],
    "flooding": [
        "पानी भरा", "जल जमाव", "बाढ़", "water logging", "flooded road",
        "standing water", "flood", "flooding", "வெள்ளம்",
    ],
    "broken_streetlight": [
        "स्ट्रीट लाइट", "street light", "streetlight", "lighting", "light",
        "lamp post", "तार फूटे", "broken light", "अंधेरा", "dark", "தெரு விளக்கு",
    ],
    "pothole": ["गड्ढे", "सड़क के गड्ढे", "pothole", "potholes", "road holes", "சாலை குழி"],
    "road_damage": [
        "सड़क", "खराब सड़क", "टूटी सड़क", "road damage", "broken road",
        "damaged road", "சாலை உடைவு",
    ],
    "garbage": [
        "कचरा", "गंदगी", "सफाई", "साफ-सफाई", "garbage", "waste", "trash",
        "cleaning", "sanitation", "குப்பை",
    ],
    "electricity": ["बिजली", "electricity", "power cut", "विद्युत", "மின்சாரம்"],
    "electrical_danger": ["live wire", "exposed wire", "electric shock", "करंट", "sparking"],
    "gas_leak": ["gas leak", "gas smell", "गैस रिसाव"],
    "fire_hazard": ["fire", "smoke from", "आग", "தீ விபத்து"],
    "traffic_signal": ["traffic signal", "traffic light", "signal not working", "सिग्नल"],
    "tree_issue": ["fallen tree", "tree", "branches", "पेड़", "மரம்"],
    "stray_animals": ["stray", "stray dog", "stray dogs", "आवारा", "आवारा कुत्ते"],
    "air_pollution": [
        "प्रदूषण", "हवा की गुणवत्ता", "air pollution", "smoke", "dust", "காற்று மாசு",
    ],
    "noise_pollution": ["शोर", "आवाज", "noise", "sound pollution", "loud", "ஒலி மாசு"],
    "illegal_dumping": ["अवैध कचरा", "illegal dumping", "waste dumping", "garbage dumping"],
}
