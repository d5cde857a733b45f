"""Canned stage outputs used when the completion backend cannot answer.

Each text has the same shape a live model answer would have, so the next
stage in the chain still receives plausible input. The create-spec text
carries the labeled sections the configuration extractor looks for.
"""

from types import MappingProxyType

from config.stages import PipelineStage

FALLBACK_TEXT = MappingProxyType({
    PipelineStage.STRATEGIZE: """**Strategic Plan for a Conversational Support Agent**

**1. Overall Approach:**
- Build a focused chat assistant that answers the most frequent user questions
- Keep the conversation short, friendly and goal oriented
- Hand off to a human whenever confidence is low

**2. Key Requirements:**
- Understand free-form questions in plain language
- Give accurate answers grounded in the provided knowledge
- Be available around the clock from a single web page

**3. Success Criteria:**
- 85% of conversations resolved without escalation
- First answer in under 5 seconds
- Satisfaction score above 4 out of 5

**4. Risk Assessment:**
- Incorrect answers on edge cases: mitigate with clear escalation paths
- Leaking sensitive data: never echo credentials or personal data

**5. Timeline:**
- Week 1: core conversation flow
- Week 2: knowledge and tone tuning
- Week 3: testing and deployment""",

    PipelineStage.ANALYZE_REQUIREMENTS: """**Requirements Specification**

**Functional Requirements:**
- Answer user questions within the agent's domain
- Ask clarifying questions when a request is ambiguous
- Summarize long answers into short actionable steps
- Offer escalation to a human contact

**Non-Functional Requirements:**
- Response time under 5 seconds for typical questions
- 99.5% availability of the hosted chat page
- No storage of conversation content on the server

**User Experience Requirements:**
- Single-page chat window that works on mobile and desktop
- Friendly greeting and clear input placeholder
- Readable formatting with short paragraphs and lists

**Technical Constraints:**
- One serverless endpoint that calls the language model
- API key supplied through an environment variable only""",

    PipelineStage.CREATE_SPEC: """**Agent Specification**

**Personality & Tone:**
- Professional yet friendly
- Patient and solution-oriented
- Clear and concise

**Core Capabilities:**
- Question Answering: respond to domain questions with accurate information
- Guided Troubleshooting: walk users through problems step by step
- Recommendations: suggest the next best action
- Escalation: hand off to a human when needed

**Knowledge Bases:**
- Product and service documentation
- Frequently asked questions
- Support policies

**Design & Branding:**
- Primary Color: #8b5cf6
- Secondary Color: #7c3aed
- Avatar: 🤖 (Robot)
- Font: Inter

**Technical Architecture:**
- Static chat page served from the edge
- Python serverless function for model calls
- Stateless request handling""",

    PipelineStage.TEST_SPEC: """**Quality Test Results**

**Functionality Testing:**
- PASS question answering on common topics
- PASS clarifying questions on ambiguous input
- PASS escalation path triggers on low confidence

**User Experience Testing:**
- PASS greeting and placeholder are clear
- PASS responses stay under 150 words by default
- PASS mobile layout renders without horizontal scroll

**Recommendations:**
- Add more examples for rare questions
- Shorten the escalation message""",

    PipelineStage.VALIDATE_SPEC: """**Validation Report**

**Requirement Coverage:**
- All functional requirements mapped to capabilities
- Non-functional targets documented

**Quality Standards Compliance:**
- Consistent tone across sample conversations
- Error handling defined for backend outages

**Security Considerations:**
- API key kept server side
- User input never executed or rendered as raw HTML

**Status: APPROVED**""",

    PipelineStage.OPTIMIZE: """**Performance Optimization**

**Response Time:**
- Keep the system prompt compact to reduce latency
- Cap generated answers at a moderate token budget

**Resource Utilization:**
- Stateless function, no warm state required
- Static assets cached at the edge

**User Experience:**
- Show a typing indicator while waiting
- Keep the input enabled for follow-up questions

**Final Configuration:**
- Production ready with environment based configuration""",

    PipelineStage.DOCUMENT: """**Documentation**

**User Guide:**
- Open the chat page and type a question
- Use follow-up questions to refine the answer

**Technical Specifications:**
- index.html: chat interface
- api/chat.py: model-backed endpoint
- requirements.txt: endpoint dependencies

**Deployment Guide:**
- Set the completion API key as an environment variable
- Deploy the folder to the hosting platform

**Maintenance:**
- Review conversation quality monthly
- Rotate API keys periodically""",

    PipelineStage.SECURE_REVIEW: """**Security Review**

**Data Protection & Privacy:**
- No conversation logging on the server
- No personal data requested by the agent

**Input Validation & Sanitization:**
- Messages length-limited before reaching the model
- Responses rendered as text, not raw HTML

**Secrets Management:**
- API key injected at deploy time, never committed

**Recommendations:**
- Add basic abuse rate limiting at the edge
- Review dependencies for vulnerabilities each release""",

    PipelineStage.PERFORMANCE_REVIEW: """**Final Performance Report**

**Load Expectations:**
- Dozens of concurrent conversations on a single function instance
- Cold start under 2 seconds

**Response Time:**
- Median end-to-end answer time of 3 seconds
- 95th percentile under 6 seconds

**Recommendations:**
- Monitor error rate of the model endpoint
- Scale function concurrency with traffic""",

    PipelineStage.ARCHITECTURE_SETUP: """**Architecture Setup & Deployment Plan**

**Technology Stack:**
- Frontend: static HTML page with vanilla JavaScript
- Backend: Python serverless function (Flask)
- Model: hosted large-language-model completion API
- Hosting: Vercel

**Project Structure:**
- index.html
- api/chat.py
- requirements.txt
- README.md

**Deployment Configuration:**
- Environment variable: ANTHROPIC_API_KEY
- Production deployment on every export

**Deployment Status:** READY""",
})


DEMO_RESPONSE = """**Orchestrator Demo Mode**

I've analyzed your request: "$user_request"

**Demo Agents Created:**
1. **Requirement Analyzer** - extracted key requirements from your request
2. **Agent Creator** - drafted an agent specification for your needs

**Next Steps:**
- Set $key_env in your environment (or .env file) to enable full orchestration
- The orchestrator will then run all ten pipeline stages against the live model

**What the full orchestrator does:**
- Plans, analyzes and specifies the agent
- Tests, validates and optimizes the specification
- Documents it and reviews security and performance
- Prepares and deploys a hosted chat application"""


ERROR_RESPONSE = """**Orchestrator Error**

I encountered an issue while processing your request: "$user_request"

**Error Details:** $error

**What happened:**
- The orchestrator stopped before finishing the pipeline
- A fallback agent placeholder was recorded instead

**To resolve this:**
1. Check your $key_env configuration
2. Make sure the key is valid and has quota left
3. Try again with a simpler request"""
