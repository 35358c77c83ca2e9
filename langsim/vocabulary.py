"""Core vocabulary: the fixed set of meaning keys a lexicon may hold (Swadesh-style)."""

CORE_VOCABULARY = (
    # Pronouns and deixis
    "I", "you", "he", "she", "we", "they", "this", "that", "here", "there",
    # Question words
    "who", "what", "where", "when", "how", "why",
    # Quantities
    "one", "two", "three", "four", "five", "many", "all", "some", "few", "other",
    # Body
    "head", "eye", "ear", "nose", "mouth", "tooth", "tongue", "hand", "foot",
    "leg", "arm", "back", "belly", "neck", "heart", "blood", "bone", "skin",
    "hair", "feather", "horn", "tail", "knee", "breast", "liver",
    # People
    "mother", "father", "child", "man", "woman", "husband", "wife", "friend", "name",
    # Animals
    "dog", "bird", "fish", "snake", "louse", "worm", "horse", "cow", "pig", "egg",
    # Nature
    "tree", "leaf", "root", "bark", "flower", "grass", "seed", "fruit", "water",
    "fire", "earth", "stone", "sand", "dust", "sun", "moon", "star", "sky", "cloud",
    "rain", "snow", "ice", "wind", "smoke", "ash", "mountain", "river", "sea", "lake",
    "salt", "road", "forest",
    # Actions
    "eat", "drink", "bite", "suck", "spit", "vomit", "blow", "breathe", "sleep",
    "walk", "run", "sit", "stand", "lie", "come", "go", "fly", "swim", "see",
    "hear", "know", "think", "smell", "say", "sing", "give", "take", "hold",
    "make", "kill", "die", "live", "hunt", "fight", "burn", "cut", "split", "wash",
    "tie", "sew", "count", "play", "laugh", "cry", "love", "fear",
    # Qualities
    "big", "small", "long", "short", "wide", "narrow", "thick", "thin", "heavy",
    "light", "hot", "cold", "warm", "wet", "dry", "full", "good", "bad", "new",
    "old", "young", "right", "left", "near", "far", "clean", "dirty", "sharp",
    "dull", "straight", "round",
    # Colors
    "red", "green", "yellow", "white", "black",
    # Time
    "day", "night", "year", "morning", "evening",
    # Things and ideas
    "house", "food", "meat", "fat", "knife", "rope", "spear", "boat", "pot",
    "life", "death", "dream", "war", "peace", "truth", "song", "work",
)
