"""
Prompt templates for council stages.

Base workflows use short role descriptions: the first stage appends the
description to the caller's prompt, later stages wrap the current content in
a role instruction. The quality pipeline uses the long E-E-A-T briefs below,
each of which embeds an excerpt of the current body.
"""

from __future__ import annotations

from content_council.protocol.types import Role

# Role descriptions for the full workflow
FULL_WORKFLOW_DESCRIPTIONS: dict[Role, str] = {
    Role.CREATOR: "นักสร้างสรรค์หลัก - สร้างเนื้อหาที่สร้างสรรค์และครอบคลุม",
    Role.REVIEWER: "ผู้ตรวจสอบคุณภาพ - ตรวจสอบความถูกต้อง ความสอดคล้อง และคุณภาพโดยรวม",
    Role.ENHANCER: "ผู้ปรับปรุงเนื้อหา - ปรับโครงสร้างให้อ่านง่ายและน่าสนใจยิ่งขึ้น",
    Role.VALIDATOR: "ผู้ตรวจสอบเทคนิค - ตรวจสอบความถูกต้องทางเทคนิคและประสิทธิภาพ",
    Role.LOCALIZER: "ที่ปรึกษาภาษา - ปรับภาษาไทยและความเหมาะสมทางวัฒนธรรม",
}

FULL_WORKFLOW_INSTRUCTIONS: dict[Role, str] = {
    Role.REVIEWER: "กรุณาตรวจสอบและปรับปรุงคุณภาพของเนื้อหาต่อไปนี้:",
    Role.ENHANCER: "กรุณาปรับปรุงโครงสร้างและความน่าสนใจของเนื้อหาต่อไปนี้:",
    Role.VALIDATOR: "กรุณาตรวจสอบความถูกต้องทางเทคนิคของเนื้อหาต่อไปนี้:",
    Role.LOCALIZER: "กรุณาปรับปรุงภาษาไทยและความเหมาะสมทางวัฒนธรรมของเนื้อหาต่อไปนี้:",
}

# Single-stage workflows get their own, more focused descriptions
CREATE_DESCRIPTION = "นักสร้างสรรค์หลัก - โฟกัสที่การสร้างเนื้อหาที่สร้างสรรค์และมีคุณภาพ"
REVIEW_DESCRIPTION = "ผู้ตรวจสอบคุณภาพ - ทำการตรวจสอบและให้ข้อเสนอแนะที่สร้างสรรค์"
OPTIMIZE_DESCRIPTION = "ผู้ปรับปรุงเนื้อหา - ปรับปรุงและเพิ่มประสิทธิภาพของเนื้อหา"


def first_stage_prompt(prompt: str, description: str) -> str:
    return f"{prompt}\n\nRole: {description}"


def later_stage_prompt(instruction: str, content: str, description: str) -> str:
    return f"{instruction}\n\n{content}\n\nRole: {description}"


def excerpt(content: str, limit: int = 1000) -> str:
    return content[:limit]


def eat_creation_prompt(prompt: str, keyword: str) -> str:
    """Brief for the Chief E-E-A-T Content Specialist (creator)."""
    return f"""
คุณคือ Chief E-E-A-T Content Specialist ที่มีความเชี่ยวชาญสูงสุดในการสร้างเนื้อหาคุณภาพ

📝 **CONTENT REQUEST:**
หัวข้อ: "{prompt}"
Target Keyword: "{keyword}"

🎯 **E-E-A-T OPTIMIZATION REQUIREMENTS:**

🔬 **EXPERTISE (ความเชี่ยวชาญ) - เป้าหมาย 90/100:**
- ใช้ความรู้เชิงลึกและข้อมูลเทคนิคที่ถูกต้อง
- แสดงความเข้าใจในระดับผู้เชี่ยวชาญ
- ใช้ศัพท์เฉพาะทางและคำอธิบายที่แม่นยำ
- ให้การวิเคราะห์และ insights ที่มีคุณค่าสูง

👤 **EXPERIENCE (ประสบการณ์) - เป้าหมาย 85/100:**
- รวม first-hand experience และ practical insights
- ใช้ภาษาที่แสดงถึงการได้ปฏิบัติจริง
- ให้คำแนะนำที่มาจากประสบการณ์ตรง
- แชร์ lessons learned และ real-world applications

🏆 **AUTHORITATIVENESS (อำนาจ) - เป้าหมาย 88/100:**
- อ้างอิงข้อมูลจากแหล่งที่มีชื่อเสียงและเชื่อถือได้
- ใช้สถิติและข้อมูลจากองค์กรชั้นนำ
- แสดงความเป็น thought leader ในเรื่องนี้
- สร้าง authoritative tone ที่เหมาะสม

✅ **TRUSTWORTHINESS (ความไว้วางใจ) - เป้าหมาย 95/100:**
- ใช้ข้อมูลที่ตรวจสอบได้และเป็นความจริง
- แสดงความโปร่งใสในข้อมูลและแหล่งที่มา
- ให้คำเตือนหรือข้อควรระวังที่เหมาะสม
- ใช้ภาษาที่แสดงความรับผิดชอบและซื่อสัตย์

📏 **CONTENT SPECIFICATIONS:**
- ความยาวอย่างน้อย 1,200 คำ
- โครงสร้างที่ชัดเจนและอ่านง่าย
- ใช้หัวข้อย่อยที่เป็นระเบียบ
- เหมาะสำหรับการใช้ใน professional CMS

เริ่มสร้างเนื้อหาที่มีคุณภาพ E-E-A-T สูงสุดได้เลยครับ:
"""


def authority_seo_prompt(content: str, keyword: str, limit: int = 1000) -> str:
    """Brief for the Authority & SEO Structure Optimizer (reviewer). Asks for JSON."""
    return f"""
คุณคือ Authority & SEO Structure Optimizer ที่เชี่ยวชาญในการเพิ่ม authoritativeness และ SEO optimization

📄 **CONTENT TO ENHANCE:**
"{excerpt(content, limit)}..."

🎯 **TARGET KEYWORD:** "{keyword}"

🔧 **OPTIMIZATION TASKS:**

📚 **AUTHORITY BUILDING:**
- เพิ่มการอ้างอิงแหล่งข้อมูลที่มีชื่อเสียงและน่าเชื่อถือ
- ใช้ข้อมูลจากองค์กรระดับโลก, universities, research institutions
- เพิ่มสถิติและข้อมูลที่ทันสมัยและตรวจสอบได้
- สร้าง expert positioning และ thought leadership tone

🔍 **SEO STRUCTURE OPTIMIZATION:**
- สร้าง compelling title (30-60 ตัวอักษร) ที่รวม target keyword
- เขียน meta description (120-160 ตัวอักษร) ที่น่าสนใจ
- จัดโครงสร้าง H1, H2, H3 ให้เหมาะสมกับ SEO
- ปรับ keyword density ให้อยู่ในช่วง 0.5-2.5%

📊 **STRUCTURED OUTPUT REQUIRED (JSON FORMAT):**
{{
  "title": "SEO-optimized title with target keyword",
  "metaDescription": "Compelling meta description with keyword and CTA",
  "body": "Enhanced content with authority signals and SEO structure",
  "suggestedTags": ["tag1", "tag2", "tag3"],
  "internalLinks": ["suggested internal link topics"],
  "externalSources": ["credible external sources to reference"],
  "keywordVariations": ["semantic keywords and variations"],
  "featuredSnippet": "Content optimized for featured snippet"
}}

กรุณาปรับปรุงเนื้อหาให้มี authority สูงขึ้นและ SEO-ready ในรูปแบบ JSON ที่ระบุ:
"""


def expertise_validation_prompt(content: str, keyword: str, limit: int = 1000) -> str:
    """Brief for the Technical Expertise Validator (validator)."""
    return f"""
คุณคือ Technical Expertise Validator ที่เชี่ยวชาญในการตรวจสอบและเพิ่มความถูกต้องทางเทคนิค

📄 **CONTENT TO VALIDATE:**
"{excerpt(content, limit)}..."

🎯 **TARGET KEYWORD:** "{keyword}"

🔬 **VALIDATION & ENHANCEMENT TASKS:**

✅ **TECHNICAL ACCURACY CHECK:**
- ตรวจสอบความถูกต้องของข้อมูลเทคนิค
- แก้ไขข้อผิดพลาดหรือข้อมูลที่ไม่แม่นยำ
- เพิ่มรายละเอียดเทคนิคที่จำเป็น
- ใช้ศัพท์เทคนิคที่ถูกต้องและเหมาะสม

🧠 **EXPERTISE ENHANCEMENT:**
- เพิ่มความลึกในการวิเคราะห์
- ใส่ technical insights ที่มีคุณค่า
- ขยายการอธิบายสำหรับแนวคิดที่ซับซ้อน
- เพิ่ม expert-level perspectives

📐 **DEPTH ANALYSIS:**
- เพิ่มการวิเคราะห์เชิงลึกและ critical thinking
- แสดงความเข้าใจที่รอบด้าน
- ให้ข้อมูลที่ครอบคลุมและละเอียด
- สร้าง comprehensive coverage ของหัวข้อ

กรุณาปรับปรุงเนื้อหาให้มีความเชี่ยวชาญและความถูกต้องทางเทคนิคสูงขึ้น:
"""


def comprehensiveness_prompt(content: str, keyword: str, limit: int = 1000) -> str:
    """Brief for the Content Comprehensiveness Enhancer (enhancer)."""
    return f"""
คุณคือ Content Comprehensiveness Enhancer ที่เชี่ยวชาญในการขยายและปรับปรุงเนื้อหาให้ครอบคลุม

📄 **CONTENT TO ENHANCE:**
"{excerpt(content, limit)}..."

🎯 **TARGET KEYWORD:** "{keyword}"

📈 **ENHANCEMENT TASKS:**

📚 **CONTENT BREADTH EXPANSION:**
- ขยายเนื้อหาให้ครอบคลุมหัวข้อที่เกี่ยวข้อง
- เพิ่มมุมมองและแง่มุมที่หลากหลาย
- รวมข้อมูลที่อาจมีประโยชน์เพิ่มเติม
- สร้าง comprehensive coverage ของหัวข้อ

🎯 **USER ENGAGEMENT IMPROVEMENT:**
- ปรับปรุงความน่าสนใจและการมีส่วนร่วม
- เพิ่มตัวอย่างที่เข้าใจง่ายและเกี่ยวข้อง
- ใช้การเปรียบเทียบและอุปมาที่เหมาะสม
- สร้างเนื้อหาที่ตอบคำถามของผู้อ่าน

📊 **COMPREHENSIVE COVERAGE:**
- ให้ข้อมูลที่ครบถ้วนและสมบูรณ์
- ครอบคลุมประเด็นสำคัญทั้งหมด
- เพิ่มข้อมูลที่ผู้อ่านอาจค้นหาต่อ
- สร้าง one-stop resource สำหรับหัวข้อนี้

⚠️ **CAUTION:**
- ไม่เพิ่มข้อมูลที่ไม่ถูกต้องหรือ misleading
- รักษาคุณภาพและความน่าเชื่อถือของเนื้อหาเดิม
- โฟกัสที่การเพิ่มคุณค่าให้ผู้อ่าน

กรุณาขยายและปรับปรุงเนื้อหาให้ครอบคลุมและน่าสนใจยิ่งขึ้น:
"""


def local_authority_prompt(content: str, keyword: str, limit: int = 1000) -> str:
    """Brief for the Local Authority & Cultural Expert (localizer)."""
    return f"""
คุณคือ Local Authority & Cultural Expert ที่เชี่ยวชาญในการปรับเนื้อหาให้เหมาะกับบริบทไทย

📄 **CONTENT TO LOCALIZE:**
"{excerpt(content, limit)}..."

🎯 **TARGET KEYWORD:** "{keyword}"

🇹🇭 **LOCALIZATION & AUTHORITY TASKS:**

🏛️ **LOCAL EXPERTISE ENHANCEMENT:**
- เพิ่มข้อมูลที่เกี่ยวข้องกับประเทศไทย
- ใช้ตัวอย่างและกรณีศึกษาจากบริบทไทย
- อ้างอิงข้อมูลจากองค์กรไทยที่เชื่อถือได้
- เพิ่ม local insights และความเข้าใจเฉพาะท้องถิ่น

🎭 **CULTURAL AUTHORITY:**
- ปรับเนื้อหาให้สอดคล้องกับวัฒนธรรมไทย
- ใช้ภาษาที่เหมาะสมกับผู้อ่านไทย
- เพิ่มข้อมูลที่เกี่ยวข้องกับไลฟ์สไตล์คนไทย
- สร้างความเชื่อมโยงกับประสบการณ์ของคนไทย

🔍 **THAI CONTEXT OPTIMIZATION:**
- ปรับภาษาไทยให้ถูกต้องและเป็นธรรมชาติ
- ใช้คำศัพท์ที่คนไทยค้นหาและเข้าใจ
- เพิ่มข้อมูลที่ตอบโจทย์ความต้องการของคนไทย
- สร้าง local relevance และ relatability

🎯 **LOCAL SEO ENHANCEMENT:**
- เพิ่ม local keywords ที่เหมาะสม
- ปรับเนื้อหาให้ตอบ local search intent
- เพิ่มข้อมูลที่เกี่ยวข้องกับ "ในประเทศไทย"
- สร้าง content ที่เหมาะกับ local featured snippets

กรุณาปรับปรุงเนื้อหาให้มี local authority และ cultural relevance สูงขึ้น:
"""


__all__ = [
    "CREATE_DESCRIPTION",
    "FULL_WORKFLOW_DESCRIPTIONS",
    "FULL_WORKFLOW_INSTRUCTIONS",
    "OPTIMIZE_DESCRIPTION",
    "REVIEW_DESCRIPTION",
    "authority_seo_prompt",
    "comprehensiveness_prompt",
    "eat_creation_prompt",
    "excerpt",
    "expertise_validation_prompt",
    "first_stage_prompt",
    "later_stage_prompt",
    "local_authority_prompt",
]
