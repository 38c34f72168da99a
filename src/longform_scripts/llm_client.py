"""
Unified LLM Client with fallback support
Priority: Gemini → OpenRouter → Ollama
All API keys read from environment / config (no secrets in code).
"""

from typing import Any, Dict, List, Optional

import ollama
import requests

from longform_scripts import config
from longform_scripts.domain.errors import TextGenerationError


class LLMClient:
    """Unified LLM client with fallback support"""

    def __init__(self, probe: bool = True, timeout: Optional[int] = None):
        self.providers: List[str] = []
        self.current_provider: Optional[str] = None
        self.timeout = timeout or config.REQUEST_TIMEOUT

        # Priority 1: Gemini (set GEMINI_API_KEY in .env)
        self.gemini_config = {
            "model": config.GEMINI_MODEL,
            "temperature": 0.1,
            "api_key": config.GEMINI_API_KEY,
            "base_url": "https://generativelanguage.googleapis.com/v1beta/models"
        }

        # Priority 2: OpenRouter (set OPENROUTER_API_KEY in .env)
        self.openrouter_config = {
            "model": config.OPENROUTER_MODEL,
            "temperature": 0.1,
            "api_key": config.OPENROUTER_API_KEY,
            "base_url": "https://openrouter.ai/api/v1"
        }

        # Priority 3: Ollama (fallback; local)
        self.ollama_config = {
            "base_url": config.OLLAMA_BASE_URL,
            "model": config.OLLAMA_MODEL
        }

        if probe:
            self._initialize_providers()

    def _initialize_providers(self):
        """Initialize providers and test availability"""
        if self._test_gemini():
            self.providers.append("gemini")
            self.current_provider = "gemini"
            print(f"  ✅ Using Gemini ({self.gemini_config['model']})")
            return

        if self._test_openrouter():
            self.providers.append("openrouter")
            self.current_provider = "openrouter"
            print(f"  ✅ Using OpenRouter ({self.openrouter_config['model']})")
            return

        if self._test_ollama():
            self.providers.append("ollama")
            self.current_provider = "ollama"
            print(f"  ✅ Using Ollama ({self.ollama_config['model']})")
            return

        print("  ⚠️  No LLM providers available!")

    def _test_gemini(self) -> bool:
        """Test if Gemini is available (requires GEMINI_API_KEY in .env)."""
        if not (self.gemini_config.get("api_key") or "").strip():
            return False
        try:
            url = f"{self.gemini_config['base_url']}/{self.gemini_config['model']}:generateContent"
            headers = {"x-goog-api-key": self.gemini_config['api_key'], "Content-Type": "application/json"}
            data = {
                "contents": [{"parts": [{"text": "test"}]}],
                "generationConfig": {"temperature": 0.1, "maxOutputTokens": 10}
            }
            response = requests.post(url, headers=headers, json=data, timeout=5)
            return response.status_code == 200
        except requests.RequestException:
            return False

    def _test_openrouter(self) -> bool:
        """Test if OpenRouter is available (requires OPENROUTER_API_KEY in .env)."""
        if not (self.openrouter_config.get("api_key") or "").strip():
            return False
        try:
            url = f"{self.openrouter_config['base_url']}/chat/completions"
            headers = {
                "Authorization": f"Bearer {self.openrouter_config['api_key']}",
                "Content-Type": "application/json"
            }
            data = {
                "model": self.openrouter_config['model'],
                "messages": [{"role": "user", "content": "test"}],
                "max_tokens": 10
            }
            response = requests.post(url, headers=headers, json=data, timeout=5)
            return response.status_code == 200
        except requests.RequestException:
            return False

    def _test_ollama(self) -> bool:
        """Test if Ollama is available"""
        try:
            client = ollama.Client(host=self.ollama_config['base_url'])
            models = client.list()
            model_names = [m.get('model') or m.get('name') for m in models.get('models', [])]
            if self.ollama_config['model'] in model_names:
                return True
            # Try to find alternative model
            if model_names:
                self.ollama_config['model'] = model_names[0]
                return True
            return False
        except Exception:
            return False

    def _chain(self) -> List[str]:
        """Current provider first, then the rest in priority order."""
        order = ["gemini", "openrouter", "ollama"]
        if self.current_provider in order:
            order.remove(self.current_provider)
            order.insert(0, self.current_provider)
        return order

    def generate(self, prompt: str, options: Optional[Dict] = None) -> Dict[str, Any]:
        """
        Generate response using current provider, with fallback
        Options: temperature, num_predict (max output tokens), system (system directives)
        Returns: {"response": str, "provider": str}
        """
        if options is None:
            options = {}

        timed_out = False
        for provider in self._chain():
            try:
                if provider == "gemini":
                    result = self._generate_gemini(prompt, options)
                elif provider == "openrouter":
                    result = self._generate_openrouter(prompt, options)
                else:
                    result = self._generate_ollama(prompt, options)
            except requests.Timeout:
                print(f"  ⏱️  {provider} request timed out (>{self.timeout}s)")
                timed_out = True
                continue
            if result and result.get("response"):
                if provider != self.current_provider:
                    print(f"  🔄 Switched LLM provider to {provider}")
                    self.current_provider = provider
                return result

        reason = "timed out" if timed_out else "returned no text"
        raise TextGenerationError(f"All LLM providers failed ({reason})", transient=True)

    def _generate_gemini(self, prompt: str, options: Dict) -> Optional[Dict]:
        """Generate using Gemini REST API"""
        if not (self.gemini_config.get("api_key") or "").strip():
            return None
        temperature = options.get('temperature', self.gemini_config['temperature'])
        max_tokens = options.get('num_predict', 16384)
        url = f"{self.gemini_config['base_url']}/{self.gemini_config['model']}:generateContent"
        data = {
            "contents": [{"role": "user", "parts": [{"text": prompt}]}],
            "generationConfig": {
                "temperature": temperature,
                "maxOutputTokens": min(max_tokens, 16384)
            }
        }
        if options.get('system'):
            data["systemInstruction"] = {"parts": [{"text": options['system']}]}
        headers = {
            "x-goog-api-key": self.gemini_config['api_key'],
            "Content-Type": "application/json"
        }
        try:
            response = requests.post(url, headers=headers, json=data, timeout=self.timeout)
        except requests.Timeout:
            raise
        except requests.RequestException as e:
            print(f"  ⚠️  Gemini REST API error: {e}")
            return None

        if response.status_code != 200:
            print(f"  ❌ Gemini API returned status {response.status_code}: {response.text[:300]}")
            return None

        try:
            candidate = (response.json().get('candidates') or [{}])[0]
            finish_reason = candidate.get('finishReason', 'UNKNOWN')
            parts = candidate.get('content', {}).get('parts', [])
            text = "".join(p.get('text', '') for p in parts)
        except (ValueError, KeyError, IndexError, AttributeError, TypeError) as e:
            print(f"  ⚠️  Gemini returned an unreadable response: {e}")
            return None
        if finish_reason == 'SAFETY':
            print(f"  ⚠️  Response blocked by safety filters (finishReason: {finish_reason})")
        elif finish_reason == 'MAX_TOKENS':
            print(f"  ⚠️  Response hit token limit (finishReason: {finish_reason})")
        if not text:
            print(f"  ⚠️  Gemini returned empty response (finishReason: {finish_reason})")
        return {"response": text, "provider": "gemini"}

    def _generate_openrouter(self, prompt: str, options: Dict) -> Optional[Dict]:
        """Generate using OpenRouter"""
        if not (self.openrouter_config.get("api_key") or "").strip():
            return None
        url = f"{self.openrouter_config['base_url']}/chat/completions"
        headers = {
            "Authorization": f"Bearer {self.openrouter_config['api_key']}",
            "Content-Type": "application/json"
        }
        messages = []
        if options.get('system'):
            messages.append({"role": "system", "content": options['system']})
        messages.append({"role": "user", "content": prompt})
        data = {
            "model": self.openrouter_config['model'],
            "messages": messages,
            "temperature": options.get('temperature', self.openrouter_config['temperature']),
            "max_tokens": options.get('num_predict', 2048)
        }
        try:
            response = requests.post(url, headers=headers, json=data, timeout=self.timeout)
        except requests.Timeout:
            raise
        except requests.RequestException as e:
            print(f"  ⚠️  OpenRouter error: {e}")
            return None
        if response.status_code == 200:
            try:
                result = response.json()
                text = (result.get('choices') or [{}])[0].get('message', {}).get('content', '')
            except (ValueError, KeyError, IndexError, AttributeError, TypeError) as e:
                print(f"  ⚠️  OpenRouter returned an unreadable response: {e}")
                return None
            return {"response": text or "", "provider": "openrouter"}
        print(f"  ⚠️  OpenRouter returned status {response.status_code}")
        return None

    def _generate_ollama(self, prompt: str, options: Dict) -> Optional[Dict]:
        """Generate using Ollama"""
        try:
            client = ollama.Client(host=self.ollama_config['base_url'], timeout=self.timeout)
            response = client.generate(
                model=self.ollama_config['model'],
                prompt=prompt,
                system=options.get('system') or None,
                options={
                    "temperature": options.get('temperature', 0.7),
                    "num_predict": options.get('num_predict', 2048)
                }
            )
        except Exception as e:
            print(f"  ⚠️  Ollama error: {e}")
            return None
        return {"response": response.get('response', ''), "provider": "ollama"}
