LYRICS_PROMPT = """\
You are the Creative Assistant for a pop song generator.
Generate three things based on the user's specifications:
1. A creative and fitting song title.
2. A "Style Prompt": a concise, comma-separated string of musical tags describing \
style, genre, instruments and mood (e.g. "Dark Synth-pop, Male Vocals, Driving Bass, \
Melancholic, 115bpm").
3. The complete song lyrics.

The output MUST be structured exactly as follows:

Title: [Song title in the specified language]

Style Prompt: [Comma-separated tags in English]

[Verse 1]
(lyrics in the specified language)

[Chorus]
(lyrics in the specified language)

... and so on for the rest of the song structure.

Section labels such as [Verse 1] and [Chorus] MUST be in English. Only the title and \
the lyrics are in the specified language. Do not add any other text.

---
SONG SPECIFICATIONS:
- Language: {language}
- Genre: {genre}
- Style Influences: {style}
- Desired Song Structure: {structure}
- Key / Mood: {key}
- BPM: {bpm}
- Lyrical Theme: {lyric_theme}
- Lyrical Sentiment Profile: {lyric_sentiment}
- Creativity (0=formulaic, 100=highly experimental): {creativity}%
---

Generate the title, style prompt and lyrics now.
"""

MIDI_PROMPT = """\
You are a symbolic music engine. Generate a multi-track MIDI file as a base64 encoded \
string: a short demo of about 30 seconds based on these specifications.

SONG SPECIFICATIONS:
- Genre: {genre}
- Style: {style}
- Key: {key}
- BPM: {bpm}
- Style Prompt: {style_prompt}

RESPONSE RULES:
1. Return ONLY the raw base64 encoded MIDI file.
2. The binary data MUST start with the MIDI header "MThd" (base64 starts with TVRoZ).
3. No JSON, no Markdown code blocks, no explanation.
4. One continuous string of base64 characters.
"""

IMAGE_PROMPT = """\
Create a vibrant, high-contrast, cyberpunk-themed album cover.
Art style: a mix of futuristic digital painting and hyper-realism.
The image MUST represent the themes, mood and key imagery of the lyrics below.

Song Title: "{title}"
Lyrical Theme: "{lyric_theme}"
Musical Style: "{style_prompt}"

Lyrics for context:
---
{lyrics}
---

Use neon glows, chrome reflections and abstract digital light patterns.
Include the text "{title}" in a stylized, legible neon font.
Centered composition, aspect ratio 1:1.
"""

IMAGE_EDIT_PROMPT = """\
You are re-imagining album cover art. The original concept was a vibrant, \
high-contrast, cyberpunk-themed cover for a song titled "{title}", with lyrical \
theme "{lyric_theme}" and musical style "{style_prompt}", representing these lyrics:
---
{lyrics}
---

Apply this edit instruction to the original concept: "{edit_prompt}".

Generate a NEW cover that incorporates the change. The text "{title}" must still be \
present and legible in a stylized neon font. Keep the cyberpunk aesthetic, a centered \
composition and a 1:1 aspect ratio.
"""

ANALYSIS_PROMPT = """\
You are a world-class music producer. Analyze these song lyrics for hit potential.

Song Title: "{title}"
Lyrical Theme: "{theme}"
Lyrics:
---
{lyrics}
---

Return ONLY a JSON object with these keys:
- "theme": the main theme and message
- "mood": the emotional tone
- "imagery": the most powerful imagery or metaphors
- "critique": constructive critique of flow, rhyme scheme and emotional impact
- "bias_check": object with "is_biased" (boolean) and "reasoning" (string), \
covering racial, gender or cultural stereotypes
- "suggestion": object with "section" and "revised_lyrics": the ONE section that most \
needs improvement, rewritten in full. "section" must match the exact header used in \
the lyrics, e.g. "[Chorus]" or "[Verse 1]".
"""

EVALUATION_PROMPT = """\
You are an expert music critic and songwriter. Evaluate this song for quality and hit \
potential.

Song Title: "{title}"
Genre: {genre}
Style: {style}
Theme: {lyric_theme}

Lyrics:
---
{lyrics}
---

Score every dimension from 0 to 100. Be critical but constructive.
Return ONLY a JSON object with these keys:
- "overallScore": number
- "lyrical": object with "rhymeConsistency", "emotionalCoherence", "originality", \
"clarity"
- "musical": object with "melodicInterest", "harmonicQuality", "rhythmicConsistency", \
"structureQuality"
- "feedback": list of strings
- "improvements": list of strings
"""
